"""Coarse low / normal / high categorisation of hormone readings."""

from __future__ import annotations

from enum import Enum

from src.cycles.base import HormoneKind, HormoneSample
from src.cycles.config_loader import EngineConfig, get_engine_config


class HormoneLevel(str, Enum):
    low = "low"
    normal = "normal"
    high = "high"


def categorize_level(
    kind: HormoneKind,
    value: float,
    config: EngineConfig | None = None,
) -> HormoneLevel:
    """Categorise a single concentration.

    Hormones without configured thresholds are reported as normal.
    """
    thresholds = (config or get_engine_config()).hormone_levels.get(kind)
    if thresholds is None:
        return HormoneLevel.normal
    if value > thresholds.high:
        return HormoneLevel.high
    if value > thresholds.normal:
        return HormoneLevel.normal
    return HormoneLevel.low


def categorize_sample(
    sample: HormoneSample,
    config: EngineConfig | None = None,
) -> dict[HormoneKind, HormoneLevel]:
    """Categorise every measured hormone in a sample; unmeasured ones are skipped."""
    cfg = config or get_engine_config()
    return {
        kind: categorize_level(kind, value, cfg)
        for kind, value in sample.levels.items()
        if value is not None
    }
