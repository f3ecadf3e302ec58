"""Canonical data models for the Luna cycle engine.

Every component reads and writes these types: the simulators build them,
the store persists them, and the inference modules derive phases and
predictions from them.  All "not measured" values are ``None``, never a
sentinel such as 0 or -1.

The enums carry classification data only.  Colours, icons and labels belong
to whatever presentation layer consumes them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Sequence, TypeVar

logger = logging.getLogger("luna.cycles")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CyclesError(Exception):
    """Base class for cycle engine errors."""


class CycleInvariantError(CyclesError, ValueError):
    """Raised when a cycle record (or a set of them) breaks a data invariant."""


class StoreWriteError(CyclesError):
    """Raised when the record store fails to commit a batch.

    Attributes:
        reason: Store-supplied failure description.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"Store write failed: {reason}")
        self.reason = reason


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Phase(str, Enum):
    menstrual = "menstrual"
    follicular = "follicular"
    ovulatory = "ovulatory"
    luteal = "luteal"
    unknown = "unknown"


class HormoneKind(str, Enum):
    lh = "lh"                      # mIU/ml
    fsh = "fsh"                    # mIU/ml
    estrogen = "estrogen"          # pg/ml
    progesterone = "progesterone"  # ng/ml
    e3g = "e3g"                    # ng/ml
    pdg = "pdg"                    # µg/ml
    testosterone = "testosterone"  # ng/dl


class PeriodFlow(str, Enum):
    none = "none"
    light = "light"
    medium = "medium"
    heavy = "heavy"
    very_heavy = "very_heavy"


class AcneLevel(str, Enum):
    none = "none"
    mild = "mild"
    moderate = "moderate"
    severe = "severe"


class BodyHairChange(str, Enum):
    no_change = "no_change"
    increased = "increased"
    decreased = "decreased"


# ---------------------------------------------------------------------------
# Day helpers
# ---------------------------------------------------------------------------


def as_day(value: date | datetime) -> date:
    """Truncate a date or datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if end is earlier)."""
    return (as_day(end) - as_day(start)).days


def iter_days(start: date, end: date) -> Iterable[date]:
    """Yield every calendar day from ``start`` through ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class CycleRecord:
    """A single menstrual cycle.

    Attributes:
        cycle_start:           First day of menstruation.
        cycle_end:             Last day of the cycle (the day before the next
                               start).  None while the cycle is ongoing.
        ovulation_date:        Estimated or observed ovulation day.
        cycle_length:          Inclusive length in days; None while ongoing.
        luteal_phase_length:   Days from ovulation to the next period.
        is_anovulatory:        True if no ovulation occurred in this cycle.
        confidence:            0.0–1.0 confidence in the derived fields.
        predicted_ovulation:   Forecast ovulation day.
        predicted_next_period: Forecast start of the following cycle.
    """

    cycle_start: date
    cycle_end: date | None = None
    ovulation_date: date | None = None
    cycle_length: int | None = None
    luteal_phase_length: int | None = None
    is_anovulatory: bool = False
    confidence: float = 0.7
    predicted_ovulation: date | None = None
    predicted_next_period: date | None = None

    @property
    def is_open(self) -> bool:
        return self.cycle_end is None

    def contains(self, day: date | datetime, today: date | None = None) -> bool:
        """Return True if ``day`` falls within this cycle.

        An open cycle extends to ``today`` (defaults to the current date).
        """
        target = as_day(day)
        end = self.cycle_end or today or date.today()
        return self.cycle_start <= target <= end

    def validate(self) -> None:
        """Check the single-record invariants.

        Raises:
            CycleInvariantError: On the first violated invariant.
        """
        if not 0.0 <= self.confidence <= 1.0:
            raise CycleInvariantError(
                f"confidence {self.confidence} is out of range [0.0, 1.0]"
            )
        if self.cycle_end is not None and self.cycle_end < self.cycle_start:
            raise CycleInvariantError(
                f"cycle_end {self.cycle_end} precedes cycle_start {self.cycle_start}"
            )
        if self.ovulation_date is not None:
            if self.is_anovulatory:
                raise CycleInvariantError("anovulatory cycle carries an ovulation_date")
            if self.ovulation_date < self.cycle_start or (
                self.cycle_end is not None and self.ovulation_date > self.cycle_end
            ):
                raise CycleInvariantError(
                    f"ovulation_date {self.ovulation_date} lies outside the cycle "
                    f"[{self.cycle_start}, {self.cycle_end}]"
                )
        if self.cycle_end is not None and self.cycle_length is not None:
            expected = days_between(self.cycle_start, self.cycle_end) + 1
            if self.cycle_length != expected:
                raise CycleInvariantError(
                    f"cycle_length {self.cycle_length} does not match the "
                    f"{expected}-day span {self.cycle_start}..{self.cycle_end}"
                )


def validate_cycles(cycles: Iterable[CycleRecord]) -> None:
    """Validate every record plus the at-most-one-open-cycle invariant.

    Raises:
        CycleInvariantError: If any record or the set as a whole is invalid.
    """
    open_starts: list[date] = []
    for cycle in cycles:
        cycle.validate()
        if cycle.is_open:
            open_starts.append(cycle.cycle_start)
    if len(open_starts) > 1:
        raise CycleInvariantError(
            f"{len(open_starts)} open cycles found (starting "
            + ", ".join(d.isoformat() for d in sorted(open_starts))
            + "); at most one cycle may be ongoing"
        )


def _empty_levels() -> dict[HormoneKind, float | None]:
    return {kind: None for kind in HormoneKind}


@dataclass(frozen=True)
class HormoneSample:
    """One day's hormone and temperature reading.

    Attributes:
        timestamp:  When the reading was taken.
        levels:     Concentration per hormone; None means "not measured".
        bbt:        Basal body temperature in °F.
        device_id:  Connected device identifier; None for manual entry.
        confidence: 0.0–1.0 reading confidence.
        notes:      Free-text note.
    """

    timestamp: datetime
    levels: dict[HormoneKind, float | None] = field(default_factory=_empty_levels)
    bbt: float | None = None
    device_id: str | None = None
    confidence: float = 0.8
    notes: str | None = None

    def __post_init__(self) -> None:
        # Every kind is always present as a key so consumers can index safely
        missing = {kind: None for kind in HormoneKind if kind not in self.levels}
        if missing:
            object.__setattr__(self, "levels", {**self.levels, **missing})
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence {self.confidence} is out of range [0.0, 1.0]")

    @property
    def day(self) -> date:
        return self.timestamp.date()

    def level(self, kind: HormoneKind) -> float | None:
        return self.levels.get(kind)


@dataclass(frozen=True)
class SymptomEntry:
    """One day's logged symptoms.

    Attributes:
        date:             Calendar day of the entry.
        period_flow:      Menstrual flow intensity.
        mood_score:       1–10 self-reported mood.
        acne_level:       Skin condition.
        body_hair_change: Change in body hair since the last log.
        weight:           Body weight in lb.
        notes:            Free-text note.
        custom_symptoms:  User-defined key → value tags.
    """

    date: date
    period_flow: PeriodFlow = PeriodFlow.none
    mood_score: int = 5
    acne_level: AcneLevel = AcneLevel.none
    body_hair_change: BodyHairChange = BodyHairChange.no_change
    weight: float | None = None
    notes: str | None = None
    custom_symptoms: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 1 <= self.mood_score <= 10:
            raise ValueError(f"mood_score {self.mood_score} is out of range [1, 10]")

    @property
    def day(self) -> date:
        return self.date


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

DatedRecord = TypeVar("DatedRecord", HormoneSample, SymptomEntry)


def first_for_day(records: Sequence[DatedRecord], day: date | datetime) -> DatedRecord | None:
    """Return the first record that falls on ``day``.

    The store may hold more than one record per day; the first match wins.
    """
    target = as_day(day)
    for record in records:
        if record.day == target:
            return record
    return None
