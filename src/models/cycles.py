"""Pydantic models for cycle tracking: manual hormone tests, symptom logs,
cycles, predictions, and day views."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from pydantic import Field, field_validator

from src.cycles.base import (
    AcneLevel,
    BodyHairChange,
    HormoneKind,
    HormoneSample,
    PeriodFlow,
    Phase,
    SymptomEntry,
)
from src.cycles.inference.hormone_levels import HormoneLevel
from src.models.base import LunaBase, parse_optional_float

MANUAL_ENTRY_DEVICE = "Manual Entry"

_HORMONE_FIELDS = {
    "lh": HormoneKind.lh,
    "fsh": HormoneKind.fsh,
    "estrogen": HormoneKind.estrogen,
    "progesterone": HormoneKind.progesterone,
    "e3g": HormoneKind.e3g,
    "pdg": HormoneKind.pdg,
    "testosterone": HormoneKind.testosterone,
}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ---------- Hormone Samples ----------

class HormoneSampleCreate(LunaBase):
    """A manually logged hormone test.

    Numeric fields accept numbers or free text; text that does not parse
    is dropped (the field is "not measured") and the sample is still created.
    """

    timestamp: datetime
    lh: float | None = None
    fsh: float | None = None
    estrogen: float | None = None
    progesterone: float | None = None
    e3g: float | None = None
    pdg: float | None = None
    testosterone: float | None = None
    bbt: float | None = None
    device_id: str | None = None
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    notes: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        # Stored timestamps are naive; aware input is converted to UTC first
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @field_validator(*_HORMONE_FIELDS, "bbt", mode="before")
    @classmethod
    def _omit_malformed(cls, value: Any) -> float | None:
        return parse_optional_float(value)

    @field_validator("device_id", mode="before")
    @classmethod
    def _manual_entry_has_no_device(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if isinstance(value, str) and value.strip() == MANUAL_ENTRY_DEVICE:
            return None
        return value

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def to_sample(self) -> HormoneSample:
        return HormoneSample(
            timestamp=self.timestamp,
            levels={kind: getattr(self, name) for name, kind in _HORMONE_FIELDS.items()},
            bbt=self.bbt,
            device_id=self.device_id,
            confidence=self.confidence,
            notes=self.notes,
        )


class HormoneSampleRead(LunaBase):
    timestamp: datetime
    levels: dict[HormoneKind, float | None]
    bbt: float | None = None
    device_id: str | None = None
    confidence: float
    notes: str | None = None


# ---------- Symptom Entries ----------

class SymptomEntryCreate(LunaBase):
    """A manually logged symptom entry; malformed weight is dropped."""

    day: date
    period_flow: PeriodFlow = PeriodFlow.none
    mood_score: int = Field(default=5, ge=1, le=10)
    acne_level: AcneLevel = AcneLevel.none
    body_hair_change: BodyHairChange = BodyHairChange.no_change
    weight: float | None = None
    notes: str | None = None
    custom_symptoms: dict[str, str] = Field(default_factory=dict)

    @field_validator("weight", mode="before")
    @classmethod
    def _omit_malformed_weight(cls, value: Any) -> float | None:
        return parse_optional_float(value)

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def to_entry(self) -> SymptomEntry:
        return SymptomEntry(
            date=self.day,
            period_flow=self.period_flow,
            mood_score=self.mood_score,
            acne_level=self.acne_level,
            body_hair_change=self.body_hair_change,
            weight=self.weight,
            notes=self.notes,
            custom_symptoms=dict(self.custom_symptoms),
        )


class SymptomEntryRead(LunaBase):
    day: date
    period_flow: PeriodFlow
    mood_score: int
    acne_level: AcneLevel
    body_hair_change: BodyHairChange
    weight: float | None = None
    notes: str | None = None
    custom_symptoms: dict[str, str] = Field(default_factory=dict)


# ---------- Cycles ----------

class CycleRead(LunaBase):
    cycle_start: date
    cycle_end: date | None = None
    ovulation_date: date | None = None
    cycle_length: int | None = None
    luteal_phase_length: int | None = None
    is_anovulatory: bool = False
    confidence: float
    predicted_ovulation: date | None = None
    predicted_next_period: date | None = None


class PredictionRead(LunaBase):
    ovulation_date: date | None = None
    luteal_phase_length: int | None = None
    predicted_ovulation: date | None = None
    predicted_next_period: date | None = None
    confidence: float
    method: str
    cycles_used: int = 0


class PhaseRead(LunaBase):
    day: date
    phase: Phase
    cycle_day: int | None = None


class DayViewRead(LunaBase):
    day: date
    phase: Phase
    cycle_day: int | None = None
    cycle: CycleRead | None = None
    sample: HormoneSampleRead | None = None
    symptoms: SymptomEntryRead | None = None
    levels: dict[HormoneKind, HormoneLevel] = Field(default_factory=dict)


# ---------- Synthetic data ----------

class RegenerateRequest(LunaBase):
    start: date | None = None
    end: date | None = None
    seed: int | None = None


class DatasetSummary(LunaBase):
    cycles: int
    hormone_samples: int
    symptom_entries: int
