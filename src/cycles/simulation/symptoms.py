"""Synthetic symptom logs at realistic logging density.

Roughly 60% of days get an entry.  Days without an entry return None: an
unlogged day is meaningful and is never filled in with "no symptom" values.

Period flow follows the day of the month, ``(day % 28) + 1``, rather than the
simulated cycle boundaries.  It is good enough for demo data only.
"""

from __future__ import annotations

import logging
import random
from datetime import date

from src.cycles.base import PeriodFlow, SymptomEntry, iter_days
from src.cycles.config_loader import EngineConfig, get_engine_config

logger = logging.getLogger("luna.cycles.simulation.symptoms")


def calendar_period_flow(day: date, rng: random.Random) -> PeriodFlow:
    """Flow for a day using the day-of-month approximation."""
    pseudo_cycle_day = day.day % 28 + 1
    if pseudo_cycle_day <= 2:
        return rng.choice([PeriodFlow.medium, PeriodFlow.heavy])
    if pseudo_cycle_day <= 4:
        return rng.choice([PeriodFlow.light, PeriodFlow.medium])
    if pseudo_cycle_day == 5:
        return PeriodFlow.light
    return PeriodFlow.none


class SymptomSimulator:
    """Generate stochastic symptom entries.

    Usage::

        simulator = SymptomSimulator()
        entry = simulator.generate_for_date(date(2026, 2, 3), random.Random(7))
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or get_engine_config()

    @property
    def _sy_config(self):
        return self._config.symptoms

    def generate_for_date(self, day: date, rng: random.Random) -> SymptomEntry | None:
        """Return an entry for ``day`` with the configured logging probability, else None."""
        sy = self._sy_config
        if rng.random() >= sy.logging_probability:
            return None

        mood_low, mood_high = sy.mood_range
        weight_low, weight_high = sy.weight_range_lb
        return SymptomEntry(
            date=day,
            period_flow=calendar_period_flow(day, rng),
            mood_score=rng.randint(mood_low, mood_high),
            acne_level=rng.choice(sy.acne_levels),
            body_hair_change=rng.choice(sy.body_hair_changes),
            weight=round(rng.uniform(weight_low, weight_high), 1),
            notes=self._pick_note(rng),
        )

    def generate_range(self, start: date, end: date, rng: random.Random) -> list[SymptomEntry]:
        """Generate entries for every logged day in ``[start, end]``."""
        entries = [
            entry
            for day in iter_days(start, end)
            if (entry := self.generate_for_date(day, rng)) is not None
        ]
        logger.debug("Generated %d symptom entries for %s..%s", len(entries), start, end)
        return entries

    def _pick_note(self, rng: random.Random) -> str | None:
        sy = self._sy_config
        pool: list[str | None] = [*sy.note_pool, *([None] * sy.blank_note_slots)]
        if not pool:
            return None
        return rng.choice(pool)
