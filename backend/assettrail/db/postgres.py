"""
PostgreSQL connection via SQLAlchemy with psycopg3.

Backs the SQL entity store, the system of record when ENTITY_STORE=postgres.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base

from assettrail.config import config

# SQLAlchemy base for model declarations
Base = declarative_base()

# Engine and session factory (initialized lazily)
_engine = None
_session_factory = None


def _engine_options(db_url: str) -> dict:
    if not db_url.startswith("postgresql"):
        return {}
    timeout_ms = int(config.STORE_TIMEOUT_SECONDS * 1000)
    return {
        "pool_pre_ping": True,  # Verify connections before use
        "pool_recycle": 300,  # Recycle connections every 5 minutes
        "pool_reset_on_return": "rollback",
        "connect_args": {
            "connect_timeout": max(1, int(config.STORE_TIMEOUT_SECONDS)),
            "options": f"-c statement_timeout={timeout_ms}",
        },
    }


def get_engine():
    """Get or create the SQLAlchemy engine."""
    global _engine
    if _engine is None:
        # Use psycopg3 dialect
        db_url = config.get_database_url().replace(
            "postgresql://", "postgresql+psycopg://"
        )
        _engine = create_engine(db_url, echo=config.DEBUG, **_engine_options(db_url))
    return _engine


def get_db_session():
    """Get a scoped database session.

    Returns the thread-local session from the scoped session factory.
    The session is cleaned up at the end of each request via close_db_session().
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = scoped_session(
            sessionmaker(bind=get_engine(), autocommit=False, autoflush=False)
        )

    return _session_factory()


def init_db():
    """Initialize database tables (for development/testing)."""
    # Import models so they register with Base.metadata
    from assettrail import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def close_db_session(exception=None):
    """Remove the current session (call at end of request).

    Always rollback to ensure clean state for next request,
    then remove the session from the registry.
    """
    if _session_factory is not None:
        try:
            _session_factory.rollback()
        finally:
            _session_factory.remove()


def rollback_session():
    """Explicitly rollback the current session.

    Call this at the start of a request to ensure clean state,
    especially after a previous request may have left the session dirty.
    """
    if _session_factory is not None:
        session = _session_factory()
        if session.is_active:
            session.rollback()


def reset_engine():
    """Drop the cached engine and sessions (tests and config changes)."""
    global _engine, _session_factory
    if _session_factory is not None:
        _session_factory.remove()
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


# Alias for convenience
db = Base
