"""
In-process EntityStore for local runs and tests.

Not transactional: each save lands immediately, which reproduces the
two-independent-writes behaviour of a plain document API.
"""

import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence

from assettrail.errors import PersistenceError
from assettrail.records import HISTORY, collection_for, from_document, record_id, to_document
from assettrail.store.base import EntityStore, Filter


class MemoryEntityStore(EntityStore):

    def __init__(self):
        self._collections: Dict[str, Dict[str, dict]] = defaultdict(dict)
        self._lock = threading.Lock()

    def get(self, collection: str, record_id: str) -> Optional[Any]:
        with self._lock:
            doc = self._collections[collection].get(record_id)
        return from_document(collection, dict(doc)) if doc is not None else None

    def find(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Any]:
        with self._lock:
            docs = [dict(doc) for doc in self._collections[collection].values()]
        docs = [doc for doc in docs if all(f.matches(doc) for f in filters)]
        if order_by:
            docs.sort(key=lambda doc: doc.get(order_by), reverse=descending)
        if limit is not None:
            docs = docs[:limit]
        return [from_document(collection, doc) for doc in docs]

    def save(self, record: Any) -> Any:
        record = self.stamp(record)
        collection = collection_for(record)
        key = record_id(record)
        with self._lock:
            docs = self._collections[collection]
            if collection == HISTORY and key in docs:
                raise PersistenceError(f"History event {key} already exists")
            docs[key] = to_document(record)
        return record

    def delete(self, collection: str, record_id: str) -> None:
        """Physically remove a record (CRUD-layer operation, never used by the core)."""
        with self._lock:
            self._collections[collection].pop(record_id, None)

    def clear(self) -> None:
        with self._lock:
            self._collections.clear()
