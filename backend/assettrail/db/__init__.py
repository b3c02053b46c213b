"""
Database connections for the asset trail core.

- PostgreSQL: system of record for the SQL entity store (via SQLAlchemy)
- Firestore: document store backend (via google-cloud-firestore)
"""

from .postgres import db, init_db, get_db_session
from .firestore import get_firestore_client, firestore_enabled

__all__ = [
    "db",
    "init_db",
    "get_db_session",
    "get_firestore_client",
    "firestore_enabled",
]
