"""Tests for ovulation / next-period prediction and the cycle lifecycle."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.cycles.base import CycleInvariantError, CycleRecord, validate_cycles
from src.cycles.config_loader import EngineConfig
from src.cycles.inference.ovulation_predictor import (
    METHOD_COMPLETED,
    METHOD_FALLBACK,
    METHOD_ROLLING_AVERAGE,
    OvulationPredictor,
)
from src.cycles.tests.conftest import TEST_TODAY, build_history, make_completed_cycle


class TestCompletedCycle:
    def test_28_day_cycle(self, engine_config: EngineConfig) -> None:
        cycle = CycleRecord(
            cycle_start=date(2024, 1, 1),
            cycle_end=date(2024, 1, 28),
            cycle_length=28,
        )
        prediction = OvulationPredictor(engine_config).predict([cycle], today=TEST_TODAY)
        assert prediction.ovulation_date == date(2024, 1, 15)
        assert prediction.luteal_phase_length == 14
        assert prediction.predicted_next_period == date(2024, 1, 29)
        assert prediction.method == METHOD_COMPLETED

    def test_odd_length_rounds_ovulation_down(self, engine_config: EngineConfig) -> None:
        cycle = make_completed_cycle(date(2024, 3, 1), 29)
        prediction = OvulationPredictor(engine_config).predict([cycle], today=TEST_TODAY)
        assert prediction.ovulation_date == date(2024, 3, 15)  # offset 14
        assert prediction.luteal_phase_length == 15

    def test_confidence_is_fixed_high_value(self, engine_config: EngineConfig) -> None:
        cycle = make_completed_cycle(date(2024, 1, 1), 28)
        prediction = OvulationPredictor(engine_config).predict([cycle], today=TEST_TODAY)
        assert 0.8 <= prediction.confidence <= 0.95
        assert prediction.confidence == engine_config.prediction.completed_confidence

    def test_anovulatory_completed_cycle_has_no_ovulation(self, engine_config: EngineConfig) -> None:
        cycle = CycleRecord(
            cycle_start=date(2024, 1, 1),
            cycle_end=date(2024, 1, 30),
            cycle_length=30,
            is_anovulatory=True,
        )
        prediction = OvulationPredictor(engine_config).predict([cycle], today=TEST_TODAY)
        assert prediction.ovulation_date is None
        assert prediction.predicted_ovulation is None
        assert prediction.luteal_phase_length is None
        assert prediction.predicted_next_period == date(2024, 1, 31)


class TestOpenCycle:
    def test_empty_history_uses_fallback(self, engine_config: EngineConfig) -> None:
        prediction = OvulationPredictor(engine_config).predict([], today=TEST_TODAY)
        assert prediction.predicted_ovulation == TEST_TODAY + timedelta(days=3)
        assert prediction.predicted_next_period == TEST_TODAY + timedelta(days=18)
        assert prediction.confidence == pytest.approx(0.87)
        assert prediction.method == METHOD_FALLBACK

    def test_single_open_cycle_uses_fallback(self, engine_config: EngineConfig) -> None:
        history = [CycleRecord(cycle_start=TEST_TODAY - timedelta(days=5))]
        prediction = OvulationPredictor(engine_config).predict(history, today=TEST_TODAY)
        assert prediction.method == METHOD_FALLBACK
        assert prediction.predicted_ovulation == TEST_TODAY + timedelta(days=3)
        assert prediction.ovulation_date is None

    def test_rolling_average_with_history(
        self, engine_config: EngineConfig, regular_history: list[CycleRecord]
    ) -> None:
        open_start = regular_history[-1].cycle_start
        assert open_start == date(2026, 1, 29)

        prediction = OvulationPredictor(engine_config).predict(regular_history, today=TEST_TODAY)
        # mean(28, 32, 29) = 29.67 → 30 days
        assert prediction.method == METHOD_ROLLING_AVERAGE
        assert prediction.cycles_used == 3
        assert prediction.predicted_next_period == open_start + timedelta(days=30)
        assert prediction.predicted_ovulation == open_start + timedelta(days=15)
        assert prediction.ovulation_date is None

    def test_overdue_projection_falls_back_to_today(
        self, engine_config: EngineConfig, regular_history: list[CycleRecord]
    ) -> None:
        late_today = date(2026, 3, 5)
        prediction = OvulationPredictor(engine_config).predict(regular_history, today=late_today)
        assert prediction.method == METHOD_FALLBACK
        assert prediction.predicted_next_period == late_today + timedelta(days=18)

    def test_rolling_window_limits_cycles_used(self, engine_config: EngineConfig) -> None:
        history = build_history(date(2025, 1, 1), [40, 40, 40, 28, 28, 28, 28, 28, 28])
        predictor = OvulationPredictor(engine_config)
        typical, used = predictor.typical_length(history)
        assert used == engine_config.prediction.rolling_average_cycles
        assert typical == 28

    def test_anovulatory_open_cycle_without_history(self, engine_config: EngineConfig) -> None:
        start = TEST_TODAY - timedelta(days=3)
        history = [CycleRecord(cycle_start=start, is_anovulatory=True)]
        prediction = OvulationPredictor(engine_config).predict(history, today=TEST_TODAY)
        assert prediction.predicted_ovulation is None
        assert prediction.predicted_next_period == start + timedelta(
            days=engine_config.prediction.default_cycle_length
        )

    def test_anovulatory_open_cycle_with_history(
        self, engine_config: EngineConfig, regular_history: list[CycleRecord]
    ) -> None:
        history = regular_history[:-1] + [
            CycleRecord(cycle_start=regular_history[-1].cycle_start, is_anovulatory=True)
        ]
        prediction = OvulationPredictor(engine_config).predict(history, today=TEST_TODAY)
        assert prediction.predicted_ovulation is None
        assert prediction.predicted_next_period is not None


class TestLifecycle:
    def test_close_cycle_fills_end_fields(self, engine_config: EngineConfig) -> None:
        open_cycle = CycleRecord(cycle_start=date(2026, 1, 29))
        closed = OvulationPredictor(engine_config).close_cycle(open_cycle, date(2026, 2, 28))
        assert closed.cycle_end == date(2026, 2, 27)
        assert closed.cycle_length == 30
        assert closed.ovulation_date == date(2026, 2, 13)
        assert closed.luteal_phase_length == 15
        # the input record is untouched
        assert open_cycle.cycle_end is None

    def test_close_anovulatory_cycle_keeps_ovulation_empty(self, engine_config: EngineConfig) -> None:
        open_cycle = CycleRecord(cycle_start=date(2026, 1, 1), is_anovulatory=True)
        closed = OvulationPredictor(engine_config).close_cycle(open_cycle, date(2026, 2, 5))
        assert closed.ovulation_date is None
        assert closed.cycle_length == 35

    def test_close_already_closed_cycle_raises(self, engine_config: EngineConfig) -> None:
        cycle = make_completed_cycle(date(2026, 1, 1), 28)
        with pytest.raises(CycleInvariantError, match="already closed"):
            OvulationPredictor(engine_config).close_cycle(cycle, date(2026, 2, 1))

    def test_close_with_non_following_start_raises(self, engine_config: EngineConfig) -> None:
        with pytest.raises(CycleInvariantError):
            OvulationPredictor(engine_config).close_cycle(
                CycleRecord(cycle_start=date(2026, 1, 10)), date(2026, 1, 10)
            )

    def test_start_new_cycle_recomputes_predictions(
        self, engine_config: EngineConfig, regular_history: list[CycleRecord]
    ) -> None:
        predictor = OvulationPredictor(engine_config)
        updated = predictor.start_new_cycle(regular_history, date(2026, 2, 28), today=date(2026, 3, 1))

        assert len(updated) == len(regular_history) + 1
        assert updated[-2].cycle_length == 30
        new_cycle = updated[-1]
        assert new_cycle.is_open
        # mean(28, 32, 29, 30) = 29.75 → 30 days
        assert new_cycle.predicted_next_period == date(2026, 3, 30)
        validate_cycles(updated)

    def test_start_new_cycle_on_empty_history(self, engine_config: EngineConfig) -> None:
        updated = OvulationPredictor(engine_config).start_new_cycle([], TEST_TODAY, today=TEST_TODAY)
        assert len(updated) == 1
        assert updated[0].confidence == pytest.approx(0.87)

    def test_start_new_cycle_rejects_two_open_cycles(self, engine_config: EngineConfig) -> None:
        history = [CycleRecord(cycle_start=date(2026, 1, 1)), CycleRecord(cycle_start=date(2026, 1, 29))]
        with pytest.raises(CycleInvariantError, match="open cycles"):
            OvulationPredictor(engine_config).start_new_cycle(history, date(2026, 2, 26))

    def test_start_new_cycle_rejects_overlap(self, engine_config: EngineConfig) -> None:
        history = build_history(date(2026, 1, 1), [28], open_cycle=False)
        with pytest.raises(CycleInvariantError, match="overlaps"):
            OvulationPredictor(engine_config).start_new_cycle(history, date(2026, 1, 20))
