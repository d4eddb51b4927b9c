"""
Persistence backend selection.

The backend is fixed at startup from settings.persistence_backend:
- "sql": one SqlPersistence per request over a fresh SQLAlchemy session
- "memory": a single process-wide InMemoryPersistence
"""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from shared.config.settings import settings
from shared.config.logging import get_logger
from shared.infrastructure.db import SessionLocal

from .base import Persistence
from .memory import InMemoryPersistence
from .sql import SqlPersistence

logger = get_logger(__name__)

BACKENDS = ("sql", "memory")


@lru_cache
def get_memory_store() -> InMemoryPersistence:
    logger.warning("Using in-memory persistence; data is lost on restart")
    return InMemoryPersistence()


def open_persistence(backend: str | None = None) -> Persistence:
    """Open a persistence handle for scripts and background work. Caller closes it."""
    backend = backend or settings.persistence_backend
    if backend == "memory":
        return get_memory_store()
    if backend == "sql":
        return SqlPersistence(SessionLocal())
    raise ValueError(f"Unknown persistence backend: {backend!r} (expected one of {BACKENDS})")


def get_persistence() -> Generator[Persistence, None, None]:
    """
    FastAPI dependency yielding the configured persistence backend.

    Usage:
        @router.get("/api/staff/tables")
        def list_tables(store: Persistence = Depends(get_persistence)):
            ...
    """
    store = open_persistence()
    try:
        yield store
    finally:
        store.close()
