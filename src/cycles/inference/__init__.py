"""Cycle inference for Luna.

Derives presentation-ready views from stored cycle records.  Nothing here
renders anything; phases and levels are plain enum values.

Modules:
    phase_classifier    — Which cycle and phase a day belongs to
    ovulation_predictor — Ovulation / next-period prediction and cycle lifecycle
    hormone_levels      — Low / normal / high categorisation of readings
    day_view            — Per-day view combining phase, readings, and symptoms
"""

from src.cycles.inference.day_view import DayView, build_day_view, current_cycle
from src.cycles.inference.hormone_levels import HormoneLevel, categorize_level
from src.cycles.inference.ovulation_predictor import OvulationPrediction, OvulationPredictor
from src.cycles.inference.phase_classifier import PhaseClassifier

__all__ = [
    "PhaseClassifier",
    "OvulationPredictor",
    "OvulationPrediction",
    "HormoneLevel",
    "categorize_level",
    "DayView",
    "build_day_view",
    "current_cycle",
]
