"""Shared fixtures for cycle engine tests."""

from __future__ import annotations

import random
from datetime import date, datetime, timedelta

import pytest

from src.cycles.base import CycleRecord, HormoneKind, HormoneSample
from src.cycles.config_loader import EngineConfig, load_engine_config
from src.cycles.store import InMemoryCycleStore

# Fixed "today" so open-cycle behaviour never depends on the wall clock
TEST_TODAY = date(2026, 2, 23)
TEST_SEED = 20260223


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_completed_cycle(start: date, length: int, **overrides) -> CycleRecord:
    """A closed cycle with the mid-cycle ovulation convention filled in."""
    offset = length // 2
    fields = dict(
        cycle_start=start,
        cycle_end=start + timedelta(days=length - 1),
        ovulation_date=start + timedelta(days=offset),
        cycle_length=length,
        luteal_phase_length=length - offset,
        confidence=0.9,
    )
    fields.update(overrides)
    return CycleRecord(**fields)


def build_history(start: date, lengths: list[int], open_cycle: bool = True) -> list[CycleRecord]:
    """Consecutive completed cycles (oldest first), optionally followed by an open one."""
    cycles = []
    current = start
    for length in lengths:
        cycles.append(make_completed_cycle(current, length))
        current += timedelta(days=length)
    if open_cycle:
        cycles.append(CycleRecord(cycle_start=current))
    return cycles


def make_sample(day: date, lh: float | None = None, bbt: float | None = None, **kwargs) -> HormoneSample:
    return HormoneSample(
        timestamp=datetime.combine(day, datetime.min.time()),
        levels={HormoneKind.lh: lh},
        bbt=bbt,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine_config() -> EngineConfig:
    """Load the real engine config for tests."""
    return load_engine_config()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(TEST_SEED)


@pytest.fixture
def store() -> InMemoryCycleStore:
    return InMemoryCycleStore()


@pytest.fixture
def regular_history() -> list[CycleRecord]:
    """Three completed cycles (28, 32, 29 days) and an open one, oldest first."""
    return build_history(date(2025, 11, 1), [28, 32, 29])
