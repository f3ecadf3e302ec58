"""Synthetic dataset service: generate demo data and load it into a store.

``SyntheticDataService`` is an ordinary object: construct one per caller,
pass it a config, and give every call the random source to use.  Nothing is
shared between instances.

Regeneration clears each record kind, inserts the new batch, and commits
with a single ``save()``.  A failed save raises ``StoreWriteError``; the
engine does not make clear+reinsert atomic beyond what the store's own
``save()`` provides.
"""

from __future__ import annotations

import logging
import random
from datetime import date, timedelta

from src.cycles.base import StoreWriteError
from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.simulation.cycles import CycleSimulator, SyntheticDataset
from src.cycles.store import CycleStore, RecordKind

logger = logging.getLogger("luna.cycles.simulation.dataset")


def default_span(today: date | None = None, months: int = 3) -> tuple[date, date]:
    """Return ``(start, end)`` covering roughly the last ``months`` months."""
    end = today or date.today()
    year, month = end.year, end.month - months
    while month < 1:
        month += 12
        year -= 1
    # Clamp the day for shorter months (e.g. May 31 → Feb 28)
    day = end.day
    while True:
        try:
            start = date(year, month, day)
            break
        except ValueError:
            day -= 1
    return start, end


class SyntheticDataService:
    """Generate synthetic cycle datasets and seed a store with them.

    Usage::

        service = SyntheticDataService()
        dataset = service.regenerate(store, *default_span(), rng=random.Random(7))
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or get_engine_config()
        self._cycles = CycleSimulator(self._config)

    def generate_synthetic_dataset(
        self,
        start: date,
        end: date,
        rng: random.Random | None = None,
        today: date | None = None,
    ) -> SyntheticDataset:
        """Generate cycles, hormone samples, and symptom entries for a span.

        Args:
            start: First day of the span.
            end:   Last day of the span.
            rng:   Random source; an unseeded one is created when omitted.
            today: Reference date for the open cycle's predictions.
        """
        dataset = self._cycles.simulate(start, end, rng or random.Random(), today=today)
        logger.info("Generated synthetic dataset %s..%s: %s", start, end, dataset.counts())
        return dataset

    def regenerate(
        self,
        store: CycleStore,
        start: date,
        end: date,
        rng: random.Random | None = None,
        today: date | None = None,
    ) -> SyntheticDataset:
        """Replace the store's contents with a freshly generated dataset.

        Raises:
            StoreWriteError: If the store fails to commit the batch.
        """
        dataset = self.generate_synthetic_dataset(start, end, rng=rng, today=today)

        for kind in RecordKind:
            store.delete_all(kind)
        for record in (*dataset.cycles, *dataset.hormone_samples, *dataset.symptom_entries):
            store.insert(record)

        result = store.save()
        if not result.ok:
            store.rollback()
            logger.warning("Synthetic dataset save failed: %s", result.reason)
            raise StoreWriteError(result.reason or "unknown error")

        logger.info("Stored synthetic dataset (%s)", dataset.counts())
        return dataset


def generate_synthetic_dataset(
    start: date,
    end: date,
    rng: random.Random | None = None,
    config: EngineConfig | None = None,
) -> SyntheticDataset:
    """Module-level shortcut for ``SyntheticDataService(config).generate_synthetic_dataset``."""
    return SyntheticDataService(config).generate_synthetic_dataset(start, end, rng=rng)


__all__ = [
    "SyntheticDataService",
    "SyntheticDataset",
    "default_span",
    "generate_synthetic_dataset",
]
