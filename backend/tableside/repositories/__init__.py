"""
Persistence collaborator.

Usage:
    from tableside.repositories import Persistence, get_persistence

    def endpoint(store: Persistence = Depends(get_persistence)):
        store.find_session(code)
"""

from .base import Persistence
from .records import (
    CartLine,
    DuplicateRecordError,
    OrderLine,
    OrderRecord,
    PersistenceError,
    PersistenceUnavailableError,
    SessionCustomerRecord,
    SessionRecord,
    TableRecord,
    derive_cart_session_id,
    new_session_code,
    utcnow,
)
from .memory import InMemoryPersistence
from .sql import SqlPersistence
from .provider import get_persistence, open_persistence, get_memory_store

__all__ = [
    # Interface
    "Persistence",
    "InMemoryPersistence",
    "SqlPersistence",
    "get_persistence",
    "open_persistence",
    "get_memory_store",
    # Records
    "TableRecord",
    "SessionRecord",
    "SessionCustomerRecord",
    "CartLine",
    "OrderLine",
    "OrderRecord",
    "derive_cart_session_id",
    "new_session_code",
    "utcnow",
    # Errors
    "PersistenceError",
    "PersistenceUnavailableError",
    "DuplicateRecordError",
]
