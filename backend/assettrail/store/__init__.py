"""
Entity store backends.

- SqlEntityStore: PostgreSQL via SQLAlchemy (default, transactional)
- FirestoreEntityStore: Firestore documents (atomic via write batches)
- MemoryEntityStore: in-process, non-transactional (local runs and tests)
"""

from typing import Optional

from assettrail.config import config
from assettrail.errors import PersistenceError
from .base import EQ, NE, EntityStore, Filter, next_timestamp
from .memory import MemoryEntityStore

_store: Optional[EntityStore] = None


def build_entity_store(kind: Optional[str] = None) -> EntityStore:
    """Create the store named by ``kind`` (defaults to ENTITY_STORE)."""
    kind = (kind or config.ENTITY_STORE).lower()
    if kind == "memory":
        return MemoryEntityStore()
    if kind == "postgres":
        from .sql import SqlEntityStore
        return SqlEntityStore()
    if kind == "firestore":
        from assettrail.db.firestore import get_firestore_client
        from .firestore import FirestoreEntityStore

        client = get_firestore_client()
        if client is None:
            raise PersistenceError("Firestore is not available")
        return FirestoreEntityStore(client)
    raise ValueError(f"Unknown ENTITY_STORE: {kind}")


def get_entity_store() -> EntityStore:
    """Get or create the process-wide entity store."""
    global _store
    if _store is None:
        _store = build_entity_store()
    return _store


def set_entity_store(store: Optional[EntityStore]) -> None:
    """Replace the process-wide store (tests, scripts)."""
    global _store
    _store = store


__all__ = [
    "EQ",
    "NE",
    "EntityStore",
    "Filter",
    "MemoryEntityStore",
    "next_timestamp",
    "build_entity_store",
    "get_entity_store",
    "set_entity_store",
]
