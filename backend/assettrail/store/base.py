"""
EntityStore: the queryable record store the lifecycle core reads and writes.

Backends implement get/find/save over the three collections in
assettrail.records. A backend that can commit several writes as one unit
sets ``transactional = True`` and makes ``atomic()`` a real transaction;
the default ``atomic()`` is a no-op and writes land one by one.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Iterator, List, NamedTuple, Optional, Sequence

from assettrail.records import Asset, AssignmentEvent, StatusChangeEvent, utcnow

EQ = "=="
NE = "!="

_clock_lock = threading.Lock()
_last_timestamp: Optional[datetime] = None


def next_timestamp() -> datetime:
    """Naive UTC timestamp, strictly increasing across calls in this process."""
    global _last_timestamp
    with _clock_lock:
        now = utcnow()
        if _last_timestamp is not None and now <= _last_timestamp:
            now = _last_timestamp + timedelta(microseconds=1)
        _last_timestamp = now
        return now


class Filter(NamedTuple):
    """Field comparison. Only equality and inequality are supported."""

    field: str
    op: str
    value: Any

    def matches(self, doc: dict) -> bool:
        actual = doc.get(self.field)
        if self.op == EQ:
            return actual == self.value
        if self.op == NE:
            # Missing fields never satisfy an inequality, as in the SQL and Firestore backends
            return actual is not None and actual != self.value
        raise ValueError(f"Unsupported filter operator: {self.op}")


class EntityStore(ABC):
    """Abstract record store."""

    transactional = False

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Any]:
        """Return the record with this id, or None."""

    @abstractmethod
    def find(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """Return records matching every filter."""

    @abstractmethod
    def save(self, record: Any) -> Any:
        """Insert or replace a record and return it as stored."""

    @contextmanager
    def atomic(self) -> Iterator[None]:
        yield

    def stamp(self, record: Any) -> Any:
        """Assign store-side timestamps before a write."""
        now = next_timestamp()
        if isinstance(record, (AssignmentEvent, StatusChangeEvent)):
            if record.created_at is None:
                return replace(record, created_at=now)
            return record
        if isinstance(record, Asset):
            if record.created_at is None:
                record.created_at = now
            record.updated_at = now
        return record
