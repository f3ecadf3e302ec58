"""Synthetic physiological data for demos and tests.

Every simulator takes an explicit ``random.Random`` so output is
reproducible under a fixed seed.

Modules:
    hormone_curve — Daily hormone concentrations and biphasic BBT
    symptoms      — Stochastic symptom entries at realistic logging density
    cycles        — Cycle boundaries, driving the two per-day simulators
    dataset       — Service that generates datasets and loads them into a store
"""

from src.cycles.simulation.cycles import CycleSimulator, SyntheticDataset
from src.cycles.simulation.dataset import SyntheticDataService, default_span
from src.cycles.simulation.hormone_curve import HormoneCurveSimulator
from src.cycles.simulation.symptoms import SymptomSimulator

__all__ = [
    "HormoneCurveSimulator",
    "SymptomSimulator",
    "CycleSimulator",
    "SyntheticDataset",
    "SyntheticDataService",
    "default_span",
]
