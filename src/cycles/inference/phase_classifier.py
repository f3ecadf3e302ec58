"""Cycle phase classification for a calendar day.

Phases are assigned from fixed day-offset windows within the containing
cycle.  The windows do not adapt per user: the result is a display aid,
not a medical calculation.

    offset 0–4   (cycle days 1–5)    menstrual
    offset 5–12  (cycle days 6–13)   follicular
    offset 13–15 (cycle days 14–16)  ovulatory
    offset 16+   (cycle day 17 on)   luteal

Cycle lookup scans the records most-recent-start first and takes the first
one whose ``[cycle_start, cycle_end or today]`` interval contains the day.
That ordering is the contract for resolving overlapping or erroneous records.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Sequence

from src.cycles.base import CycleRecord, Phase, as_day, days_between

logger = logging.getLogger("luna.cycles.inference.phase_classifier")

MENSTRUAL_LAST_OFFSET = 4
FOLLICULAR_LAST_OFFSET = 12
OVULATORY_LAST_OFFSET = 15


def phase_for_offset(offset: int) -> Phase:
    """Map a 0-based day offset within a cycle to its phase."""
    if offset < 0:
        return Phase.unknown
    if offset <= MENSTRUAL_LAST_OFFSET:
        return Phase.menstrual
    if offset <= FOLLICULAR_LAST_OFFSET:
        return Phase.follicular
    if offset <= OVULATORY_LAST_OFFSET:
        return Phase.ovulatory
    return Phase.luteal


def cycle_day(day: date | datetime, cycle: CycleRecord) -> int:
    """Return the 1-based cycle day of ``day`` within ``cycle``."""
    return days_between(cycle.cycle_start, day) + 1


class PhaseClassifier:
    """Classify days into cycle phases.

    Usage::

        classifier = PhaseClassifier()
        phase = classifier.classify(date(2026, 2, 14), cycles_newest_first)
    """

    def find_cycle(
        self,
        day: date | datetime,
        cycles: Sequence[CycleRecord],
        today: date | None = None,
    ) -> CycleRecord | None:
        """Return the cycle containing ``day``, scanning most recent start first.

        Args:
            day:    Day to look up; any time-of-day component is ignored.
            cycles: Cycle records ordered by ``cycle_start`` descending.
            today:  End of an open cycle (defaults to the current date).
        """
        target = as_day(day)
        reference = today or date.today()
        for cycle in cycles:
            if cycle.contains(target, today=reference):
                return cycle
        return None

    def classify(
        self,
        day: date | datetime,
        cycles: Sequence[CycleRecord],
        today: date | None = None,
    ) -> Phase:
        """Return the phase of ``day``, or ``Phase.unknown`` if no cycle contains it."""
        cycle = self.find_cycle(day, cycles, today=today)
        if cycle is None:
            logger.debug("No cycle contains %s; phase unknown", as_day(day))
            return Phase.unknown
        return phase_for_offset(days_between(cycle.cycle_start, day))

    def classify_with_day(
        self,
        day: date | datetime,
        cycles: Sequence[CycleRecord],
        today: date | None = None,
    ) -> tuple[Phase, int | None]:
        """Return ``(phase, cycle_day)``; cycle_day is None when the phase is unknown."""
        cycle = self.find_cycle(day, cycles, today=today)
        if cycle is None:
            return Phase.unknown, None
        offset = days_between(cycle.cycle_start, day)
        return phase_for_offset(offset), offset + 1


def classify(
    day: date | datetime,
    cycles: Sequence[CycleRecord],
    today: date | None = None,
) -> Phase:
    """Module-level shortcut for ``PhaseClassifier().classify``."""
    return PhaseClassifier().classify(day, cycles, today=today)
