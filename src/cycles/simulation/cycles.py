"""Synthetic cycle boundaries and the full per-day dataset built on them.

Completed cycles take their lengths from a short fixed sequence (28, 32, 29
by default, repeated as needed) to show natural variability.  Exactly one
open cycle follows, starting the day after the last completed cycle.
"""

from __future__ import annotations

import itertools
import logging
import random
from dataclasses import dataclass, field
from datetime import date, timedelta

from src.cycles.base import CycleRecord, HormoneSample, SymptomEntry, days_between
from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.inference.ovulation_predictor import OvulationPredictor, ovulation_offset
from src.cycles.simulation.hormone_curve import HormoneCurveSimulator
from src.cycles.simulation.symptoms import SymptomSimulator

logger = logging.getLogger("luna.cycles.simulation.cycles")


@dataclass
class SyntheticDataset:
    """Records produced by one generation pass, each list in date order."""

    cycles: list[CycleRecord] = field(default_factory=list)
    hormone_samples: list[HormoneSample] = field(default_factory=list)
    symptom_entries: list[SymptomEntry] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "cycles": len(self.cycles),
            "hormone_samples": len(self.hormone_samples),
            "symptom_entries": len(self.symptom_entries),
        }


class CycleSimulator:
    """Generate cycle records and drive the per-day simulators.

    Usage::

        simulator = CycleSimulator()
        dataset = simulator.simulate(date(2026, 1, 1), date(2026, 4, 1), random.Random(7))
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or get_engine_config()
        self._predictor = OvulationPredictor(self._config)
        self._hormones = HormoneCurveSimulator(self._config)
        self._symptoms = SymptomSimulator(self._config)

    def generate(
        self,
        start: date,
        end: date,
        rng: random.Random,
        today: date | None = None,
    ) -> list[CycleRecord]:
        """Generate cycles covering ``[start, end]``.

        A completed cycle is emitted only if it ends strictly before ``end``,
        so the trailing open cycle always starts within the span.

        Args:
            start: First day of the first cycle.
            end:   Last day of the span.
            rng:   Random source for cycle confidences.
            today: Reference date for the open cycle's predictions
                   (defaults to ``end``).

        Returns:
            Cycles ordered by start, the last one open.

        Raises:
            ValueError: If ``end`` precedes ``start``.
        """
        if end < start:
            raise ValueError(f"end {end} precedes start {start}")

        low_conf, high_conf = self._config.cycles.confidence_range
        cycles: list[CycleRecord] = []
        current = start
        for length in itertools.cycle(self._config.cycles.lengths):
            cycle_end = current + timedelta(days=length - 1)
            if cycle_end >= end:
                break
            offset = ovulation_offset(length)
            ovulation = current + timedelta(days=offset)
            cycles.append(
                CycleRecord(
                    cycle_start=current,
                    cycle_end=cycle_end,
                    ovulation_date=ovulation,
                    cycle_length=length,
                    luteal_phase_length=length - offset,
                    is_anovulatory=False,
                    confidence=round(rng.uniform(low_conf, high_conf), 2),
                    predicted_ovulation=ovulation - timedelta(days=1),
                    predicted_next_period=current + timedelta(days=length),
                )
            )
            current = cycle_end + timedelta(days=1)

        open_cycle = CycleRecord(cycle_start=current)
        prediction = self._predictor.predict(cycles + [open_cycle], today=today or end)
        cycles.append(self._predictor.apply_prediction(open_cycle, prediction))

        logger.debug(
            "Generated %d completed cycles plus open cycle from %s",
            len(cycles) - 1, current,
        )
        return cycles

    def simulate(
        self,
        start: date,
        end: date,
        rng: random.Random,
        today: date | None = None,
    ) -> SyntheticDataset:
        """Generate cycles plus their hormone samples and symptom entries.

        Hormone samples cover every day of the span, one per day; the open
        cycle is filled through ``end``.
        """
        cycles = self.generate(start, end, rng, today=today)
        dataset = SyntheticDataset(cycles=cycles)
        for cycle in cycles:
            last_day = cycle.cycle_end or end
            length = cycle.cycle_length or days_between(cycle.cycle_start, last_day) + 1
            dataset.hormone_samples.extend(
                self._hormones.generate(cycle.cycle_start, length, rng)
            )
            dataset.symptom_entries.extend(
                self._symptoms.generate_range(cycle.cycle_start, last_day, rng)
            )
        return dataset
