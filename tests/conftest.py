"""
Pytest configuration for all tests.
Sets up Python path to find the backend assettrail package and provides
store fixtures shared by the unit and integration suites.
"""

import sys
import os

# Add backend directory to Python path
backend_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'backend'))
if backend_path not in sys.path:
    sys.path.insert(0, backend_path)

# Tests never talk to a real database unless a fixture wires one up
os.environ.setdefault("ENTITY_STORE", "memory")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from assettrail.db.postgres import Base
from assettrail.records import User
from assettrail.store import MemoryEntityStore, set_entity_store
from assettrail.store.sql import SqlEntityStore


ADMIN_ID = "admin-1"
USER_ONE = "user-1"
USER_TWO = "user-2"


def make_sql_store():
    """SqlEntityStore over a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    sessions = scoped_session(sessionmaker(bind=engine, autoflush=False))
    return SqlEntityStore(sessions), sessions, engine


def seed_users(store):
    store.save(User(user_id=ADMIN_ID, fullname="Ada Admin", email="ada@example.com", role="admin"))
    store.save(User(user_id=USER_ONE, fullname="Uma One", email="uma@example.com"))
    store.save(User(user_id=USER_TWO, fullname="Theo Two", email="theo@example.com"))


@pytest.fixture
def memory_store():
    return MemoryEntityStore()


@pytest.fixture
def sql_store():
    store, sessions, engine = make_sql_store()
    yield store
    sessions.remove()
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Every backend the lifecycle core must behave the same on."""
    if request.param == "memory":
        yield MemoryEntityStore()
        return
    sql, sessions, engine = make_sql_store()
    yield sql
    sessions.remove()
    engine.dispose()


@pytest.fixture
def seeded_store(store):
    seed_users(store)
    return store


@pytest.fixture(autouse=True)
def reset_global_store():
    """Keep the process-wide store from leaking between tests."""
    yield
    set_entity_store(None)
