"""Luna Cycle Phase & Fertility Inference Engine.

Turns dated hormone and symptom records into a phase for any day and a
forecast of the next ovulation and period, and generates synthetic data to
exercise both.  Rule-based heuristics for a wellness app, not clinical
decision support.

Subpackages:
    inference/  — Phase classification, ovulation prediction, day views
    simulation/ — Hormone curve, symptom, and cycle simulators

Core modules:
    base          — Canonical records (CycleRecord, HormoneSample, SymptomEntry) and enums
    store         — CycleStore ABC and the in-memory reference store
    config_loader — Load/validate/hot-reload engine_config.yaml
"""

from src.cycles.base import (
    CycleInvariantError,
    CycleRecord,
    CyclesError,
    HormoneKind,
    HormoneSample,
    Phase,
    StoreWriteError,
    SymptomEntry,
)
from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.store import CycleStore, InMemoryCycleStore, RecordKind

__all__ = [
    "CycleRecord",
    "HormoneSample",
    "SymptomEntry",
    "HormoneKind",
    "Phase",
    "CyclesError",
    "CycleInvariantError",
    "StoreWriteError",
    "CycleStore",
    "InMemoryCycleStore",
    "RecordKind",
    "EngineConfig",
    "get_engine_config",
]
