"""Load, validate, and hot-reload the Luna engine configuration.

The config lives in ``engine_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_engine_config()`` to re-read from
disk after an admin update; no restart required.

Components never reach for the cached instance on their own when one is
passed in, so tests can build as many independently configured engines as
they like.

Usage::

    from src.cycles.config_loader import get_engine_config

    config = get_engine_config()
    config.prediction.fallback_confidence            # 0.87
    config.hormone_curve.phase_for_day(15).name      # 'ovulatory'
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.cycles.base import AcneLevel, BodyHairChange, HormoneKind

logger = logging.getLogger("luna.cycles.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "engine_config.yaml"

# Hormones the curve simulator draws for every phase
SIMULATED_HORMONES = (
    HormoneKind.lh,
    HormoneKind.fsh,
    HormoneKind.estrogen,
    HormoneKind.progesterone,
)

_PHASE_ORDER = ("menstrual", "follicular", "ovulatory", "luteal", "late_luteal")


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------

Range = tuple[float, float]


@dataclass
class PredictionConfig:
    """Ovulation / next-period prediction settings."""

    completed_confidence: float = 0.9
    fallback_confidence: float = 0.87
    fallback_ovulation_offset_days: int = 3
    fallback_next_period_offset_days: int = 18
    default_cycle_length: int = 28
    rolling_average_cycles: int = 6


@dataclass
class PhaseHormoneRanges:
    """Uniform sampling bounds for one phase of the simulated curve.

    ``last_day`` is the final cycle day of the phase; None for the open-ended
    late luteal window.
    """

    name: str
    last_day: int | None
    ranges: dict[HormoneKind, Range]

    def range_for(self, kind: HormoneKind) -> Range:
        return self.ranges[kind]


@dataclass
class BBTConfig:
    base_f: float = 97.2
    shift_cycle_day: int = 14
    pre_shift_noise: Range = (-0.3, 0.2)
    post_shift_noise: Range = (0.3, 0.8)


@dataclass
class HormoneCurveConfig:
    """Hormone curve simulator settings."""

    device_id: str
    confidence_range: Range
    phases: list[PhaseHormoneRanges]
    follicular_estrogen_step: float
    luteal_progesterone_slope: float
    luteal_progesterone_intercept: float
    bbt: BBTConfig

    def phase(self, name: str) -> PhaseHormoneRanges:
        for phase in self.phases:
            if phase.name == name:
                return phase
        raise KeyError(name)

    def phase_for_day(self, cycle_day: int) -> PhaseHormoneRanges:
        """Return the phase window that covers a 1-based cycle day."""
        for phase in self.phases:
            if phase.last_day is None or cycle_day <= phase.last_day:
                return phase
        return self.phases[-1]


@dataclass
class SymptomConfig:
    """Symptom simulator settings."""

    logging_probability: float = 0.6
    mood_range: tuple[int, int] = (3, 9)
    acne_levels: list[AcneLevel] = field(
        default_factory=lambda: [AcneLevel.none, AcneLevel.mild, AcneLevel.moderate]
    )
    body_hair_changes: list[BodyHairChange] = field(
        default_factory=lambda: list(BodyHairChange)
    )
    weight_range_lb: Range = (135.0, 145.0)
    note_pool: list[str] = field(default_factory=list)
    blank_note_slots: int = 3


@dataclass
class CycleSimulationConfig:
    lengths: list[int] = field(default_factory=lambda: [28, 32, 29])
    confidence_range: Range = (0.8, 0.95)


@dataclass
class LevelThresholds:
    """A value above ``high`` is high, above ``normal`` is normal, else low."""

    normal: float
    high: float


@dataclass
class EngineConfig:
    """Complete, validated engine configuration.

    This is the single in-memory representation of engine_config.yaml.

    Attributes:
        version:        Config schema version string.
        prediction:     Predictor confidences and fallback offsets.
        hormone_curve:  Per-phase hormone bounds, BBT shift, device id.
        symptoms:       Symptom logging density and value pools.
        cycles:         Simulated cycle length sequence.
        hormone_levels: Low/normal/high thresholds per hormone.
    """

    version: str
    prediction: PredictionConfig
    hormone_curve: HormoneCurveConfig
    symptoms: SymptomConfig
    cycles: CycleSimulationConfig
    hormone_levels: dict[HormoneKind, LevelThresholds]
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when engine_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Engine config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> EngineConfig:
    """Validate the raw YAML dict and construct an EngineConfig.

    Every section is optional; missing keys fall back to the shipped
    defaults.  All problems are collected and reported together.

    Raises:
        ConfigValidationError: If any value is missing, malformed or out of range.
    """
    errors: list[str] = []

    def _number(value: Any, where: str, default: float) -> float:
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            errors.append(f"{where} must be a number, got {value!r}")
            return default

    def _integer(value: Any, where: str, default: int | None) -> int | None:
        if value is None:
            return default
        if isinstance(value, bool):
            errors.append(f"{where} must be an integer, got {value!r}")
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            errors.append(f"{where} must be an integer, got {value!r}")
            return default

    def _range(value: Any, where: str, default: Range) -> Range:
        if value is None:
            return default
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            errors.append(f"{where} must be a [low, high] pair, got {value!r}")
            return default
        low = _number(value[0], f"{where}[0]", default[0])
        high = _number(value[1], f"{where}[1]", default[1])
        if low > high:
            errors.append(f"{where} = [{low}, {high}] has low > high")
        return (low, high)

    def _unit_interval(value: float, where: str) -> None:
        if not (0.0 <= value <= 1.0):
            errors.append(f"{where} = {value} is out of range [0.0, 1.0]")

    version = str(raw.get("version", "1.0"))

    # ── Prediction ──
    pr_raw = raw.get("prediction", {}) or {}
    defaults = PredictionConfig()
    prediction = PredictionConfig(
        completed_confidence=_number(
            pr_raw.get("completed_confidence"), "prediction.completed_confidence",
            defaults.completed_confidence,
        ),
        fallback_confidence=_number(
            pr_raw.get("fallback_confidence"), "prediction.fallback_confidence",
            defaults.fallback_confidence,
        ),
        fallback_ovulation_offset_days=_integer(
            pr_raw.get("fallback_ovulation_offset_days"),
            "prediction.fallback_ovulation_offset_days",
            defaults.fallback_ovulation_offset_days,
        ),
        fallback_next_period_offset_days=_integer(
            pr_raw.get("fallback_next_period_offset_days"),
            "prediction.fallback_next_period_offset_days",
            defaults.fallback_next_period_offset_days,
        ),
        default_cycle_length=_integer(
            pr_raw.get("default_cycle_length"), "prediction.default_cycle_length",
            defaults.default_cycle_length,
        ),
        rolling_average_cycles=_integer(
            pr_raw.get("rolling_average_cycles"), "prediction.rolling_average_cycles",
            defaults.rolling_average_cycles,
        ),
    )
    _unit_interval(prediction.completed_confidence, "prediction.completed_confidence")
    _unit_interval(prediction.fallback_confidence, "prediction.fallback_confidence")
    if prediction.default_cycle_length < 1:
        errors.append("prediction.default_cycle_length must be at least 1")
    if prediction.rolling_average_cycles < 1:
        errors.append("prediction.rolling_average_cycles must be at least 1")

    # ── Hormone curve ──
    hc_raw = raw.get("hormone_curve", {}) or {}
    phases_raw = hc_raw.get("phases", {}) or {}
    phases: list[PhaseHormoneRanges] = []
    for name in _PHASE_ORDER:
        p_raw = phases_raw.get(name)
        if not isinstance(p_raw, dict):
            errors.append(f"hormone_curve.phases.{name} is missing or not a mapping")
            continue
        ranges: dict[HormoneKind, Range] = {}
        for kind in SIMULATED_HORMONES:
            if kind.value not in p_raw:
                errors.append(f"hormone_curve.phases.{name}.{kind.value} is missing")
                continue
            ranges[kind] = _range(
                p_raw[kind.value], f"hormone_curve.phases.{name}.{kind.value}", (0.0, 0.0)
            )
        last_day = _integer(p_raw.get("last_day"), f"hormone_curve.phases.{name}.last_day", None)
        if name != "late_luteal" and p_raw.get("last_day") is None:
            errors.append(f"hormone_curve.phases.{name}.last_day is missing")
        phases.append(PhaseHormoneRanges(name=name, last_day=last_day, ranges=ranges))
    bounded = [p.last_day for p in phases if p.last_day is not None]
    if bounded != sorted(set(bounded)):
        errors.append("hormone_curve.phases last_day values must be strictly increasing")

    bbt_raw = hc_raw.get("bbt", {}) or {}
    bbt_defaults = BBTConfig()
    bbt = BBTConfig(
        base_f=_number(bbt_raw.get("base_f"), "hormone_curve.bbt.base_f", bbt_defaults.base_f),
        shift_cycle_day=_integer(
            bbt_raw.get("shift_cycle_day"), "hormone_curve.bbt.shift_cycle_day",
            bbt_defaults.shift_cycle_day,
        ),
        pre_shift_noise=_range(
            bbt_raw.get("pre_shift_noise"), "hormone_curve.bbt.pre_shift_noise",
            bbt_defaults.pre_shift_noise,
        ),
        post_shift_noise=_range(
            bbt_raw.get("post_shift_noise"), "hormone_curve.bbt.post_shift_noise",
            bbt_defaults.post_shift_noise,
        ),
    )
    if bbt.pre_shift_noise[1] >= bbt.post_shift_noise[0]:
        errors.append(
            "hormone_curve.bbt.pre_shift_noise must lie entirely below post_shift_noise"
        )

    confidence_range = _range(
        hc_raw.get("confidence_range"), "hormone_curve.confidence_range", (0.75, 0.95)
    )
    _unit_interval(confidence_range[0], "hormone_curve.confidence_range[0]")
    _unit_interval(confidence_range[1], "hormone_curve.confidence_range[1]")

    hormone_curve = HormoneCurveConfig(
        device_id=str(hc_raw.get("device_id", "Mira Monitor")),
        confidence_range=confidence_range,
        phases=phases,
        follicular_estrogen_step=_number(
            hc_raw.get("follicular_estrogen_step"),
            "hormone_curve.follicular_estrogen_step", 0.3,
        ),
        luteal_progesterone_slope=_number(
            hc_raw.get("luteal_progesterone_slope"),
            "hormone_curve.luteal_progesterone_slope", 1.5,
        ),
        luteal_progesterone_intercept=_number(
            hc_raw.get("luteal_progesterone_intercept"),
            "hormone_curve.luteal_progesterone_intercept", 2.0,
        ),
        bbt=bbt,
    )

    # ── Symptoms ──
    sy_raw = raw.get("symptoms", {}) or {}
    sy_defaults = SymptomConfig()
    mood_low, mood_high = _range(sy_raw.get("mood_range"), "symptoms.mood_range", (3, 9))
    if not (1 <= mood_low and mood_high <= 10):
        errors.append(f"symptoms.mood_range = [{mood_low}, {mood_high}] must lie within [1, 10]")

    acne_levels: list[AcneLevel] = []
    for value in sy_raw.get("acne_levels", [a.value for a in sy_defaults.acne_levels]):
        try:
            acne_levels.append(AcneLevel(value))
        except ValueError:
            errors.append(f"symptoms.acne_levels contains unknown level {value!r}")
    body_hair: list[BodyHairChange] = []
    for value in sy_raw.get(
        "body_hair_changes", [b.value for b in sy_defaults.body_hair_changes]
    ):
        try:
            body_hair.append(BodyHairChange(value))
        except ValueError:
            errors.append(f"symptoms.body_hair_changes contains unknown value {value!r}")
    if not acne_levels:
        errors.append("symptoms.acne_levels must not be empty")
    if not body_hair:
        errors.append("symptoms.body_hair_changes must not be empty")

    symptoms = SymptomConfig(
        logging_probability=_number(
            sy_raw.get("logging_probability"), "symptoms.logging_probability",
            sy_defaults.logging_probability,
        ),
        mood_range=(int(mood_low), int(mood_high)),
        acne_levels=acne_levels,
        body_hair_changes=body_hair,
        weight_range_lb=_range(
            sy_raw.get("weight_range_lb"), "symptoms.weight_range_lb",
            sy_defaults.weight_range_lb,
        ),
        note_pool=[str(n) for n in sy_raw.get("note_pool", [])],
        blank_note_slots=_integer(
            sy_raw.get("blank_note_slots"), "symptoms.blank_note_slots",
            sy_defaults.blank_note_slots,
        ),
    )
    _unit_interval(symptoms.logging_probability, "symptoms.logging_probability")
    if symptoms.blank_note_slots < 0:
        errors.append("symptoms.blank_note_slots must not be negative")

    # ── Cycles ──
    cy_raw = raw.get("cycles", {}) or {}
    lengths_raw = cy_raw.get("lengths", [28, 32, 29])
    lengths: list[int] = []
    for value in lengths_raw or []:
        length = _integer(value, "cycles.lengths", None)
        if length is None:
            continue
        if length < 1:
            errors.append(f"cycles.lengths contains non-positive length {length}")
        lengths.append(length)
    if not lengths:
        errors.append("cycles.lengths must not be empty")
    cycle_conf = _range(cy_raw.get("confidence_range"), "cycles.confidence_range", (0.8, 0.95))
    _unit_interval(cycle_conf[0], "cycles.confidence_range[0]")
    _unit_interval(cycle_conf[1], "cycles.confidence_range[1]")
    cycles = CycleSimulationConfig(lengths=lengths, confidence_range=cycle_conf)

    # ── Hormone levels ──
    hl_raw = raw.get("hormone_levels", {}) or {}
    hormone_levels: dict[HormoneKind, LevelThresholds] = {}
    for key, thresholds in hl_raw.items():
        try:
            kind = HormoneKind(key)
        except ValueError:
            errors.append(f"hormone_levels.{key} is not a known hormone")
            continue
        if not isinstance(thresholds, dict):
            errors.append(f"hormone_levels.{key} must be a mapping with normal/high")
            continue
        normal = _number(thresholds.get("normal"), f"hormone_levels.{key}.normal", 0.0)
        high = _number(thresholds.get("high"), f"hormone_levels.{key}.high", 0.0)
        if normal > high:
            errors.append(f"hormone_levels.{key}: normal ({normal}) exceeds high ({high})")
        hormone_levels[kind] = LevelThresholds(normal=normal, high=high)

    if errors:
        raise ConfigValidationError(
            f"engine_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return EngineConfig(
        version=version,
        prediction=prediction,
        hormone_curve=hormone_curve,
        symptoms=symptoms,
        cycles=cycles,
        hormone_levels=hormone_levels,
        _raw=raw,
    )


def load_engine_config(path: Path | None = None) -> EngineConfig:
    """Load and validate the engine config from disk.

    Args:
        path: Override path to YAML. Uses the bundled engine_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded engine config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global cached instance with hot-reload support
# ---------------------------------------------------------------------------

_config: EngineConfig | None = None
_config_lock = threading.Lock()


def get_engine_config() -> EngineConfig:
    """Return the cached EngineConfig, loading it on first call.

    Thread-safe.  Use ``reload_engine_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_engine_config()
    return _config


def reload_engine_config(path: Path | None = None) -> EngineConfig:
    """Reload the engine config from disk and replace the cached instance.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_engine_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded engine config: %s → %s", old_version, new_config.version)
    return new_config
