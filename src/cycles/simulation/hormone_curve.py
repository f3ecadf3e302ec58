"""Synthetic hormone and basal body temperature curves.

Produces one ``HormoneSample`` per day of a cycle with values drawn
uniformly from phase-dependent ranges (see ``engine_config.yaml``):

- Menstrual (days 1–5):   low LH, moderate FSH, low estrogen and progesterone
- Follicular (days 6–13): LH/FSH rising, estrogen scaled up with each day
- Ovulatory (days 14–16): LH surge, FSH and estrogen peak
- Luteal (days 17–28):    progesterone climbs, capped by a linear ramp
- Late luteal (29+):      everything dropping toward the next period

BBT is biphasic: a single step up at the shift day (day 14 by default), not
a gradual ramp.  The step is the fertility signal the rest of the engine
relies on, so pre- and post-shift noise bands never overlap.

Values are rounded to two decimals, the precision of a home test reader.
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, time, timedelta

from src.cycles.base import HormoneKind, HormoneSample
from src.cycles.config_loader import EngineConfig, PhaseHormoneRanges, get_engine_config

logger = logging.getLogger("luna.cycles.simulation.hormone_curve")


class HormoneCurveSimulator:
    """Generate phase-consistent daily hormone samples for a cycle.

    Usage::

        simulator = HormoneCurveSimulator()
        samples = simulator.generate(date(2026, 2, 1), 28, random.Random(7))
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or get_engine_config()

    @property
    def _hc_config(self):
        return self._config.hormone_curve

    @property
    def device_id(self) -> str:
        return self._hc_config.device_id

    def generate(
        self,
        cycle_start: date,
        cycle_length_days: int,
        rng: random.Random,
    ) -> list[HormoneSample]:
        """Generate one sample per day of ``[cycle_start, cycle_start + length)``.

        Args:
            cycle_start:       First day of the cycle.
            cycle_length_days: Number of days to generate.
            rng:               Random source; seed it for reproducible output.

        Returns:
            Samples in chronological order.

        Raises:
            ValueError: If ``cycle_length_days`` is less than 1.
        """
        if cycle_length_days < 1:
            raise ValueError(f"cycle_length_days must be at least 1, got {cycle_length_days}")

        low_conf, high_conf = self._hc_config.confidence_range
        samples: list[HormoneSample] = []
        for offset in range(cycle_length_days):
            day = cycle_start + timedelta(days=offset)
            cycle_day = offset + 1
            levels = self.hormone_levels(cycle_day, rng)
            samples.append(
                HormoneSample(
                    timestamp=datetime.combine(day, time.min),
                    levels=levels,
                    bbt=self.bbt(cycle_day, rng),
                    device_id=self.device_id,
                    confidence=round(rng.uniform(low_conf, high_conf), 2),
                )
            )

        logger.debug(
            "Generated %d hormone samples from %s", len(samples), cycle_start
        )
        return samples

    def hormone_levels(
        self, cycle_day: int, rng: random.Random
    ) -> dict[HormoneKind, float | None]:
        """Draw LH, FSH, estrogen and progesterone for a 1-based cycle day.

        Other hormones are left unmeasured.
        """
        hc = self._hc_config
        phase = hc.phase_for_day(cycle_day)

        lh = self._draw(phase, HormoneKind.lh, rng)
        fsh = self._draw(phase, HormoneKind.fsh, rng)
        estrogen = self._draw(phase, HormoneKind.estrogen, rng)
        progesterone = self._draw(phase, HormoneKind.progesterone, rng)

        if phase.name == "follicular":
            days_in = cycle_day - (hc.phase("menstrual").last_day or 0)
            estrogen *= 1 + days_in * hc.follicular_estrogen_step
        elif phase.name == "luteal":
            days_in = cycle_day - (hc.phase("ovulatory").last_day or 0)
            cap = days_in * hc.luteal_progesterone_slope + hc.luteal_progesterone_intercept
            progesterone = min(progesterone, cap)

        return {
            HormoneKind.lh: round(lh, 2),
            HormoneKind.fsh: round(fsh, 2),
            HormoneKind.estrogen: round(estrogen, 2),
            HormoneKind.progesterone: round(progesterone, 2),
            HormoneKind.e3g: None,
            HormoneKind.pdg: None,
            HormoneKind.testosterone: None,
        }

    def bbt(self, cycle_day: int, rng: random.Random) -> float:
        """Basal body temperature in °F with a single step at the shift day."""
        bbt_cfg = self._hc_config.bbt
        if cycle_day < bbt_cfg.shift_cycle_day:
            low, high = bbt_cfg.pre_shift_noise
        else:
            low, high = bbt_cfg.post_shift_noise
        return round(bbt_cfg.base_f + rng.uniform(low, high), 2)

    @staticmethod
    def _draw(phase: PhaseHormoneRanges, kind: HormoneKind, rng: random.Random) -> float:
        low, high = phase.range_for(kind)
        return rng.uniform(low, high)
