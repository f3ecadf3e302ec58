"""Tests for cycle generation and the synthetic dataset service."""

from __future__ import annotations

import random
from datetime import date, timedelta

import pytest

from src.cycles.base import StoreWriteError, validate_cycles
from src.cycles.config_loader import EngineConfig
from src.cycles.simulation.cycles import CycleSimulator
from src.cycles.simulation.dataset import SyntheticDataService, default_span
from src.cycles.store import InMemoryCycleStore, RecordKind, SaveResult
from src.cycles.tests.conftest import TEST_SEED, TEST_TODAY

SPAN_START = date(2025, 11, 23)
SPAN_END = TEST_TODAY  # 2026-02-23, 93 days inclusive


class FailingStore(InMemoryCycleStore):
    """Store whose commits always fail."""

    def save(self) -> SaveResult:
        self.rollback()
        return SaveResult.failure("disk full")


# ---------------------------------------------------------------------------
# Cycle boundaries
# ---------------------------------------------------------------------------


class TestCycleGeneration:
    def test_fixed_length_sequence_then_open_cycle(
        self, engine_config: EngineConfig, rng: random.Random
    ) -> None:
        cycles = CycleSimulator(engine_config).generate(SPAN_START, SPAN_END, rng)
        assert [c.cycle_length for c in cycles] == [28, 32, 29, None]
        assert cycles[-1].cycle_start == date(2026, 2, 20)

    def test_cycles_are_contiguous(self, engine_config: EngineConfig, rng: random.Random) -> None:
        cycles = CycleSimulator(engine_config).generate(SPAN_START, SPAN_END, rng)
        for previous, following in zip(cycles, cycles[1:]):
            assert following.cycle_start == previous.cycle_end + timedelta(days=1)

    def test_completed_cycle_fields(self, engine_config: EngineConfig, rng: random.Random) -> None:
        first = CycleSimulator(engine_config).generate(SPAN_START, SPAN_END, rng)[0]
        assert first.cycle_end == date(2025, 12, 20)
        assert first.ovulation_date == SPAN_START + timedelta(days=14)
        assert first.luteal_phase_length == 14
        assert first.predicted_ovulation == first.ovulation_date - timedelta(days=1)
        assert first.predicted_next_period == SPAN_START + timedelta(days=28)
        assert 0.8 <= first.confidence <= 0.95
        assert not first.is_anovulatory

    def test_exactly_one_open_cycle_with_empty_end_fields(
        self, engine_config: EngineConfig, rng: random.Random
    ) -> None:
        cycles = CycleSimulator(engine_config).generate(SPAN_START, SPAN_END, rng)
        open_cycles = [c for c in cycles if c.is_open]
        assert len(open_cycles) == 1
        current = open_cycles[0]
        assert current is cycles[-1]
        assert current.cycle_length is None
        assert current.ovulation_date is None
        assert current.luteal_phase_length is None
        assert current.predicted_next_period is not None

    def test_generated_cycles_satisfy_invariants(
        self, engine_config: EngineConfig, rng: random.Random
    ) -> None:
        validate_cycles(CycleSimulator(engine_config).generate(date(2024, 1, 1), SPAN_END, rng))

    def test_long_span_repeats_length_sequence(
        self, engine_config: EngineConfig, rng: random.Random
    ) -> None:
        cycles = CycleSimulator(engine_config).generate(date(2025, 1, 1), date(2025, 12, 31), rng)
        lengths = [c.cycle_length for c in cycles[:-1]]
        assert lengths[:6] == [28, 32, 29, 28, 32, 29]

    def test_single_day_span_is_only_open_cycle(
        self, engine_config: EngineConfig, rng: random.Random
    ) -> None:
        cycles = CycleSimulator(engine_config).generate(SPAN_END, SPAN_END, rng)
        assert len(cycles) == 1
        assert cycles[0].is_open
        assert cycles[0].cycle_start == SPAN_END

    def test_end_before_start_raises(self, engine_config: EngineConfig, rng: random.Random) -> None:
        with pytest.raises(ValueError, match="precedes"):
            CycleSimulator(engine_config).generate(SPAN_END, SPAN_START, rng)


# ---------------------------------------------------------------------------
# Full dataset
# ---------------------------------------------------------------------------


class TestSimulate:
    def test_one_hormone_sample_per_day_of_span(
        self, engine_config: EngineConfig, rng: random.Random
    ) -> None:
        dataset = CycleSimulator(engine_config).simulate(SPAN_START, SPAN_END, rng)
        days = [s.day for s in dataset.hormone_samples]
        assert len(days) == 93
        assert days[0] == SPAN_START
        assert days[-1] == SPAN_END
        assert len(set(days)) == len(days)

    def test_symptoms_within_span(self, engine_config: EngineConfig, rng: random.Random) -> None:
        dataset = CycleSimulator(engine_config).simulate(SPAN_START, SPAN_END, rng)
        assert dataset.symptom_entries
        assert all(SPAN_START <= e.date <= SPAN_END for e in dataset.symptom_entries)

    def test_bbt_shift_restarts_every_cycle(
        self, engine_config: EngineConfig, rng: random.Random
    ) -> None:
        dataset = CycleSimulator(engine_config).simulate(SPAN_START, SPAN_END, rng)
        by_day = {s.day: s for s in dataset.hormone_samples}
        for cycle in dataset.cycles[:-1]:
            assert by_day[cycle.cycle_start].bbt <= 97.4
            assert by_day[cycle.cycle_start + timedelta(days=13)].bbt >= 97.5


class TestSyntheticDataService:
    def test_same_seed_same_dataset(self, engine_config: EngineConfig) -> None:
        service = SyntheticDataService(engine_config)
        first = service.generate_synthetic_dataset(
            SPAN_START, SPAN_END, rng=random.Random(TEST_SEED), today=TEST_TODAY
        )
        second = service.generate_synthetic_dataset(
            SPAN_START, SPAN_END, rng=random.Random(TEST_SEED), today=TEST_TODAY
        )
        assert first == second

    def test_independent_instances(self, engine_config: EngineConfig) -> None:
        a = SyntheticDataService(engine_config)
        b = SyntheticDataService(engine_config)
        assert a is not b
        assert a.generate_synthetic_dataset(
            SPAN_START, SPAN_END, rng=random.Random(1)
        ).counts()["cycles"] == b.generate_synthetic_dataset(
            SPAN_START, SPAN_END, rng=random.Random(2)
        ).counts()["cycles"]

    def test_regenerate_populates_store(
        self, engine_config: EngineConfig, store: InMemoryCycleStore
    ) -> None:
        dataset = SyntheticDataService(engine_config).regenerate(
            store, SPAN_START, SPAN_END, rng=random.Random(TEST_SEED), today=TEST_TODAY
        )
        assert store.count(RecordKind.cycle) == len(dataset.cycles)
        assert store.count(RecordKind.hormone_sample) == 93
        assert store.count(RecordKind.symptom_entry) == len(dataset.symptom_entries)

    def test_regenerate_twice_replaces_rather_than_appends(
        self, engine_config: EngineConfig, store: InMemoryCycleStore
    ) -> None:
        service = SyntheticDataService(engine_config)
        service.regenerate(store, SPAN_START, SPAN_END, rng=random.Random(TEST_SEED), today=TEST_TODAY)
        first_counts = {kind: store.count(kind) for kind in RecordKind}
        service.regenerate(store, SPAN_START, SPAN_END, rng=random.Random(TEST_SEED), today=TEST_TODAY)
        assert {kind: store.count(kind) for kind in RecordKind} == first_counts

    def test_failed_save_raises_and_keeps_previous_data(
        self, engine_config: EngineConfig
    ) -> None:
        store = FailingStore()
        with pytest.raises(StoreWriteError, match="disk full") as exc_info:
            SyntheticDataService(engine_config).regenerate(
                store, SPAN_START, SPAN_END, rng=random.Random(TEST_SEED)
            )
        assert exc_info.value.reason == "disk full"
        assert store.count(RecordKind.cycle) == 0
        assert not store.has_pending_changes


class TestDefaultSpan:
    def test_three_months_back(self) -> None:
        assert default_span(date(2026, 2, 23)) == (date(2025, 11, 23), date(2026, 2, 23))

    def test_clamps_short_months(self) -> None:
        assert default_span(date(2026, 5, 31)) == (date(2026, 2, 28), date(2026, 5, 31))
