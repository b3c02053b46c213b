"""
Firestore client wrapper.

Supports multiple databases based on DATABASE_MODE:
- local: uses 'assettrail-dev' database
- cloud: uses '(default)' database
"""

import os
from pathlib import Path

from assettrail.config import config

# Firestore client (initialized lazily)
_firestore_client = None


def firestore_enabled() -> bool:
    """Check if Firestore is the configured entity store."""
    return config.ENTITY_STORE == "firestore"


def get_firestore_client():
    """
    Get or create Firestore client.

    Uses the database specified by DATABASE_MODE. Returns None if Firestore
    is not the configured store or the credentials file is missing.
    """
    global _firestore_client

    if not firestore_enabled():
        return None

    if _firestore_client is not None:
        return _firestore_client

    # Resolve credentials path
    creds_path = config.GCP_CREDENTIALS_PATH
    if not os.path.isabs(creds_path):
        backend_dir = Path(__file__).parent.parent.parent
        creds_path = backend_dir / creds_path

    if not os.path.exists(creds_path):
        print(f"[Firestore] Credentials not found: {creds_path}")
        return None

    # Set credentials environment variable
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = str(creds_path)

    from google.cloud import firestore

    database_id = config.get_firestore_database()
    _firestore_client = firestore.Client(
        project=config.GCP_PROJECT_ID,
        database=database_id,
    )
    print(f"[Firestore] Connected to project: {config.GCP_PROJECT_ID}, database: {database_id}")
    return _firestore_client


def reset_firestore_state():
    """Reset Firestore state for testing or retry."""
    global _firestore_client
    _firestore_client = None
