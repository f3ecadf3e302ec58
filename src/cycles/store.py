"""Record store interface for cycles, hormone samples, and symptom entries.

The engine treats persistence as an external collaborator: anything that
implements ``CycleStore`` can back it.  ``InMemoryCycleStore`` is the
reference implementation used by the demo API and the tests.

Writes are staged and only become visible to ``query()`` after a successful
``save()``.  A failed save is reported to the caller as a ``SaveResult`` with
a reason; it is never logged and swallowed.  Clear-then-reinsert is the
caller's unit of consistency; the store does not make a multi-call sequence
atomic on its own.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, time, timezone
from enum import Enum
from typing import Union

from src.cycles.base import (
    CycleInvariantError,
    CycleRecord,
    HormoneSample,
    SymptomEntry,
    validate_cycles,
)

logger = logging.getLogger("luna.cycles.store")

Record = Union[CycleRecord, HormoneSample, SymptomEntry]


class RecordKind(str, Enum):
    cycle = "cycle"
    hormone_sample = "hormone_sample"
    symptom_entry = "symptom_entry"

    @classmethod
    def of(cls, record: Record) -> "RecordKind":
        if isinstance(record, CycleRecord):
            return cls.cycle
        if isinstance(record, HormoneSample):
            return cls.hormone_sample
        if isinstance(record, SymptomEntry):
            return cls.symptom_entry
        raise TypeError(f"Unsupported record type: {type(record).__name__}")


def sort_key(record: Record) -> datetime:
    """Return the naive datetime a record is ordered by.

    Aware hormone timestamps are compared in UTC so they sort alongside
    naive ones instead of raising ``TypeError``.
    """
    if isinstance(record, CycleRecord):
        return datetime.combine(record.cycle_start, time.min)
    if isinstance(record, HormoneSample):
        ts = record.timestamp
        if ts.tzinfo is not None:
            ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
        return ts
    return datetime.combine(record.date, time.min)


@dataclass(frozen=True)
class SaveResult:
    """Outcome of ``CycleStore.save()``.

    Attributes:
        ok:     True if every pending change was committed.
        reason: Failure description when ``ok`` is False.
    """

    ok: bool
    reason: str | None = None

    @classmethod
    def success(cls) -> "SaveResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "SaveResult":
        return cls(ok=False, reason=reason)


class CycleStore(ABC):
    """Abstract persistent store for engine records."""

    @abstractmethod
    def insert(self, record: Record) -> None:
        """Stage a record for the next ``save()``."""

    @abstractmethod
    def delete_all(self, kind: RecordKind) -> None:
        """Stage removal of every record of ``kind``."""

    @abstractmethod
    def query(self, kind: RecordKind, descending: bool = False) -> list[Record]:
        """Return committed records of ``kind`` sorted by date."""

    @abstractmethod
    def save(self) -> SaveResult:
        """Commit staged inserts and deletes."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard staged changes."""


class InMemoryCycleStore(CycleStore):
    """Process-local store with staged writes and snapshot reads.

    ``save()`` refuses to commit a state with more than one open cycle and
    reports the violation as a failed ``SaveResult``; staged changes are
    discarded in that case and the last committed snapshot stays intact.

    Usage::

        store = InMemoryCycleStore()
        store.insert(CycleRecord(cycle_start=date(2026, 2, 1)))
        result = store.save()
        if not result.ok:
            raise StoreWriteError(result.reason)
    """

    def __init__(self) -> None:
        self._committed: dict[RecordKind, list[Record]] = {kind: [] for kind in RecordKind}
        self._pending: dict[RecordKind, list[Record]] | None = None
        self._lock = threading.Lock()

    def _staging(self) -> dict[RecordKind, list[Record]]:
        if self._pending is None:
            self._pending = {kind: list(records) for kind, records in self._committed.items()}
        return self._pending

    def insert(self, record: Record) -> None:
        kind = RecordKind.of(record)
        with self._lock:
            self._staging()[kind].append(record)

    def delete_all(self, kind: RecordKind) -> None:
        with self._lock:
            self._staging()[kind] = []

    def query(self, kind: RecordKind, descending: bool = False) -> list[Record]:
        with self._lock:
            records = list(self._committed[kind])
        # Stable sort: duplicates for the same day keep insertion order
        return sorted(records, key=sort_key, reverse=descending)

    def save(self) -> SaveResult:
        with self._lock:
            if self._pending is None:
                return SaveResult.success()
            try:
                validate_cycles(self._pending[RecordKind.cycle])
            except CycleInvariantError as exc:
                self._pending = None
                logger.warning("Rejected save: %s", exc)
                return SaveResult.failure(str(exc))
            self._committed = self._pending
            self._pending = None
        logger.debug(
            "Committed store snapshot: %s",
            {kind.value: len(records) for kind, records in self._committed.items()},
        )
        return SaveResult.success()

    def rollback(self) -> None:
        with self._lock:
            self._pending = None

    @property
    def has_pending_changes(self) -> bool:
        return self._pending is not None

    def count(self, kind: RecordKind) -> int:
        with self._lock:
            return len(self._committed[kind])
