"""Per-day derived view combining phase, readings, and symptoms.

Gathers everything a day-detail screen needs in one place so presentation
code does no inference of its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Sequence

from src.cycles.base import (
    CycleRecord,
    HormoneKind,
    HormoneSample,
    Phase,
    SymptomEntry,
    as_day,
    first_for_day,
)
from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.inference.hormone_levels import HormoneLevel, categorize_sample
from src.cycles.inference.phase_classifier import PhaseClassifier


@dataclass
class DayView:
    """Everything known about one calendar day.

    Attributes:
        day:       The calendar day.
        phase:     Cycle phase, or unknown if no cycle contains the day.
        cycle_day: 1-based day within the containing cycle.
        cycle:     The containing cycle record.
        sample:    First hormone sample recorded that day.
        symptoms:  First symptom entry recorded that day.
        levels:    Low/normal/high category per measured hormone.
    """

    day: date
    phase: Phase = Phase.unknown
    cycle_day: int | None = None
    cycle: CycleRecord | None = None
    sample: HormoneSample | None = None
    symptoms: SymptomEntry | None = None
    levels: dict[HormoneKind, HormoneLevel] = field(default_factory=dict)


def current_cycle(cycles: Sequence[CycleRecord], today: date | None = None) -> CycleRecord | None:
    """Return the ongoing cycle: the first (most recent start first) that is
    open or has not ended before ``today``."""
    reference = today or date.today()
    for cycle in cycles:
        if cycle.cycle_end is None or cycle.cycle_end >= reference:
            return cycle
    return None


def build_day_view(
    day: date | datetime,
    cycles: Sequence[CycleRecord],
    samples: Sequence[HormoneSample],
    entries: Sequence[SymptomEntry],
    today: date | None = None,
    config: EngineConfig | None = None,
) -> DayView:
    """Assemble the derived view of one day.

    Args:
        day:     Day of interest.
        cycles:  Cycle records, most recent start first.
        samples: Hormone samples in store order; first match per day wins.
        entries: Symptom entries in store order; first match per day wins.
        today:   End of an open cycle (defaults to the current date).
        config:  Engine config for level thresholds.
    """
    target = as_day(day)
    classifier = PhaseClassifier()
    cycle = classifier.find_cycle(target, cycles, today=today)
    phase, number = classifier.classify_with_day(target, cycles, today=today)

    sample = first_for_day(samples, target)
    levels = categorize_sample(sample, config or get_engine_config()) if sample else {}

    return DayView(
        day=target,
        phase=phase,
        cycle_day=number,
        cycle=cycle,
        sample=sample,
        symptoms=first_for_day(entries, target),
        levels=levels,
    )
