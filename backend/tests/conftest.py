"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PERSISTENCE_BACKEND", "sql")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("EVENTS_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SEED_DEMO_TABLES", "false")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.config.constants import Roles, TableType
from shared.security.auth import sign_staff_token
from tableside.main import app
from tableside.models import Base
from tableside.repositories import (
    InMemoryPersistence,
    SqlPersistence,
    TableRecord,
    get_persistence,
)
from tableside.routers._common import get_store_opener
from tableside.services.domain import CartMirror, SessionLifecycleManager


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def sql_store(db_session):
    """SQL persistence bound to the per-test session."""
    return SqlPersistence(db_session)


@pytest.fixture(scope="function")
def memory_store():
    """Fresh in-memory persistence."""
    return InMemoryPersistence()


@pytest.fixture(scope="function")
def client(sql_store):
    """
    Create a test client with the persistence dependency overridden.
    """
    def override_get_persistence():
        yield sql_store

    app.dependency_overrides[get_persistence] = override_get_persistence
    # Guard checks open their own sessions on the same in-memory database
    app.dependency_overrides[get_store_opener] = lambda: lambda: SqlPersistence(TestingSessionLocal())

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def lifecycle(memory_store):
    return SessionLifecycleManager(memory_store, base_url="http://testserver")


@pytest.fixture
def mirror():
    """Cart mirror isolated from the process-wide default."""
    return CartMirror(max_carts=16)


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def seed_table(sql_store):
    """Regular table "1" with four seats."""
    return sql_store.add_table(TableRecord(table_id="1", name="Table 1", type=TableType.REGULAR, seats=4))


@pytest.fixture
def seed_terminal(sql_store):
    """Terminal "T-01" (no seats)."""
    return sql_store.add_table(TableRecord(table_id="T-01", name="Terminal T-01", type=TableType.TERMINAL))


@pytest.fixture
def memory_table(memory_store):
    return memory_store.add_table(TableRecord(table_id="1", name="Table 1", type=TableType.REGULAR, seats=4))


@pytest.fixture
def memory_terminal(memory_store):
    return memory_store.add_table(TableRecord(table_id="T-01", name="Terminal T-01", type=TableType.TERMINAL))


# =============================================================================
# Staff auth
# =============================================================================


def _auth_headers(staff_id: str, role: str) -> dict[str, str]:
    token = sign_staff_token(staff_id, [role], name=f"{role.title()} {staff_id}")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def manager_headers():
    return _auth_headers("1", Roles.MANAGER)


@pytest.fixture
def waiter_headers():
    return _auth_headers("2", Roles.WAITER)


@pytest.fixture
def kitchen_headers():
    return _auth_headers("3", Roles.KITCHEN)
