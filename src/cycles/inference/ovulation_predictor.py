"""Ovulation and next-period prediction.

Rule-based, no regression beyond a simple average:

- Completed cycle: ovulation falls at ``cycle_start + cycle_length // 2``;
  the luteal phase is the remainder; the next period starts the day after
  the cycle ends.
- Open cycle with completed history: the same rule applied to the rolling
  average of recent completed cycle lengths.
- No usable history: fixed offsets from today (ovulation in 3 days, next
  period in 18 days).  The engine never blocks on missing history.

Anovulatory cycles never produce an ovulation date but still get a
next-period estimate from the typical cycle length.

This module also owns the cycle lifecycle: closing the open cycle once the
next start is observed and recomputing predictions for the new open cycle.
"""

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Sequence

from src.cycles.base import CycleInvariantError, CycleRecord, days_between
from src.cycles.config_loader import EngineConfig, get_engine_config

logger = logging.getLogger("luna.cycles.inference.ovulation_predictor")

METHOD_COMPLETED = "completed_cycle"
METHOD_ROLLING_AVERAGE = "rolling_average"
METHOD_FALLBACK = "fallback"


@dataclass
class OvulationPrediction:
    """Derived ovulation / next-period view of a cycle.

    Attributes:
        ovulation_date:        Estimated ovulation for a completed cycle.
        luteal_phase_length:   Days from ovulation to the next period.
        predicted_ovulation:   Forecast ovulation day.
        predicted_next_period: Forecast start of the next cycle.
        confidence:            0.0–1.0 heuristic confidence.
        method:                'completed_cycle', 'rolling_average', or 'fallback'.
        cycles_used:           Completed cycles the estimate was derived from.
    """

    ovulation_date: date | None = None
    luteal_phase_length: int | None = None
    predicted_ovulation: date | None = None
    predicted_next_period: date | None = None
    confidence: float = 0.0
    method: str = METHOD_FALLBACK
    cycles_used: int = 0


def ovulation_offset(cycle_length: int) -> int:
    """Day offset of ovulation from cycle start (mid-cycle, rounded down)."""
    return cycle_length // 2


class OvulationPredictor:
    """Predict ovulation and the next period from cycle history.

    Usage::

        predictor = OvulationPredictor()
        prediction = predictor.predict(cycles_oldest_first)
        print(prediction.predicted_next_period, prediction.confidence)
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or get_engine_config()

    @property
    def _pr_config(self):
        return self._config.prediction

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def typical_length(self, history: Sequence[CycleRecord]) -> tuple[int | None, int]:
        """Rolling average of completed cycle lengths.

        Returns:
            ``(rounded_average, cycles_used)``; the average is None when no
            completed cycle is available.
        """
        lengths = [c.cycle_length for c in history if c.cycle_length is not None]
        recent = lengths[-self._pr_config.rolling_average_cycles:]
        if not recent:
            return None, 0
        return round(statistics.mean(recent)), len(recent)

    def predict(
        self,
        history: Sequence[CycleRecord],
        today: date | None = None,
    ) -> OvulationPrediction:
        """Predict for the most recent cycle in ``history``.

        Args:
            history: Cycle records ordered by ``cycle_start`` ascending.
            today:   Anchor for fallback offsets (defaults to the current date).

        Returns:
            OvulationPrediction for the last cycle in ``history``.
        """
        pr = self._pr_config
        reference = today or date.today()

        if not history:
            return self._fallback(reference)

        target = history[-1]
        prior = list(history[:-1])

        if target.cycle_length is not None:
            return self._from_completed(target, target.cycle_length)

        typical, used = self.typical_length(prior)
        if typical is None:
            if target.is_anovulatory:
                return OvulationPrediction(
                    predicted_next_period=target.cycle_start
                    + timedelta(days=pr.default_cycle_length),
                    confidence=pr.fallback_confidence,
                    method=METHOD_FALLBACK,
                )
            return self._fallback(reference)

        next_period = target.cycle_start + timedelta(days=typical)
        if next_period < reference:
            logger.info(
                "Average-length projection %s has already passed; using fallback",
                next_period,
            )
            return self._fallback(reference, anovulatory=target.is_anovulatory)

        return OvulationPrediction(
            predicted_ovulation=(
                None
                if target.is_anovulatory
                else target.cycle_start + timedelta(days=ovulation_offset(typical))
            ),
            predicted_next_period=next_period,
            confidence=pr.completed_confidence,
            method=METHOD_ROLLING_AVERAGE,
            cycles_used=used,
        )

    def _from_completed(self, cycle: CycleRecord, length: int) -> OvulationPrediction:
        next_period = cycle.cycle_start + timedelta(days=length)
        if cycle.is_anovulatory:
            return OvulationPrediction(
                predicted_next_period=next_period,
                confidence=self._pr_config.completed_confidence,
                method=METHOD_COMPLETED,
                cycles_used=1,
            )
        offset = ovulation_offset(length)
        ovulation = cycle.cycle_start + timedelta(days=offset)
        return OvulationPrediction(
            ovulation_date=ovulation,
            luteal_phase_length=length - offset,
            predicted_ovulation=ovulation,
            predicted_next_period=next_period,
            confidence=self._pr_config.completed_confidence,
            method=METHOD_COMPLETED,
            cycles_used=1,
        )

    def _fallback(self, today: date, anovulatory: bool = False) -> OvulationPrediction:
        pr = self._pr_config
        logger.debug("No usable cycle history; using fallback offsets from %s", today)
        return OvulationPrediction(
            predicted_ovulation=(
                None if anovulatory else today + timedelta(days=pr.fallback_ovulation_offset_days)
            ),
            predicted_next_period=today + timedelta(days=pr.fallback_next_period_offset_days),
            confidence=pr.fallback_confidence,
            method=METHOD_FALLBACK,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def apply_prediction(cycle: CycleRecord, prediction: OvulationPrediction) -> CycleRecord:
        """Return a copy of ``cycle`` carrying the prediction's forecast fields."""
        return replace(
            cycle,
            predicted_ovulation=prediction.predicted_ovulation,
            predicted_next_period=prediction.predicted_next_period,
            confidence=prediction.confidence,
        )

    def close_cycle(self, cycle: CycleRecord, next_start: date) -> CycleRecord:
        """Fill the end-dependent fields of an open cycle.

        Args:
            cycle:      The open cycle.
            next_start: First day of the following cycle.

        Raises:
            CycleInvariantError: If the cycle is already closed or
                ``next_start`` is not after its start.
        """
        if not cycle.is_open:
            raise CycleInvariantError(f"Cycle starting {cycle.cycle_start} is already closed")
        if next_start <= cycle.cycle_start:
            raise CycleInvariantError(
                f"Next cycle start {next_start} must follow {cycle.cycle_start}"
            )
        length = days_between(cycle.cycle_start, next_start)
        closed = replace(
            cycle,
            cycle_end=next_start - timedelta(days=1),
            cycle_length=length,
        )
        prediction = self._from_completed(closed, length)
        closed = replace(
            closed,
            ovulation_date=cycle.ovulation_date or prediction.ovulation_date,
            luteal_phase_length=prediction.luteal_phase_length,
        )
        closed.validate()
        return closed

    def start_new_cycle(
        self,
        history: Sequence[CycleRecord],
        new_start: date,
        today: date | None = None,
    ) -> list[CycleRecord]:
        """Close the open cycle (if any) and append a new open cycle.

        Predictions for the new cycle are recomputed from the updated history.

        Args:
            history:   Cycle records ordered by ``cycle_start`` ascending.
            new_start: First day of the new cycle.
            today:     Reference date for predictions.

        Returns:
            A new list; the input records are not modified.

        Raises:
            CycleInvariantError: If ``history`` already has more than one open
                cycle or ``new_start`` does not follow the last cycle.
        """
        open_cycles = [c for c in history if c.is_open]
        if len(open_cycles) > 1:
            raise CycleInvariantError(
                f"{len(open_cycles)} open cycles in history; at most one may be ongoing"
            )

        updated = list(history)
        if updated:
            last = updated[-1]
            if last.is_open:
                updated[-1] = self.close_cycle(last, new_start)
            elif last.cycle_end is not None and new_start <= last.cycle_end:
                raise CycleInvariantError(
                    f"New cycle start {new_start} overlaps cycle ending {last.cycle_end}"
                )

        fresh = CycleRecord(cycle_start=new_start)
        prediction = self.predict(updated + [fresh], today=today)
        updated.append(self.apply_prediction(fresh, prediction))
        logger.info(
            "Started cycle %s (predicted next period %s, method=%s)",
            new_start, prediction.predicted_next_period, prediction.method,
        )
        return updated


def predict(history: Sequence[CycleRecord], today: date | None = None) -> OvulationPrediction:
    """Module-level shortcut for ``OvulationPredictor().predict``."""
    return OvulationPredictor().predict(history, today=today)
