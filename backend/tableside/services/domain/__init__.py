"""
Domain Services.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Persistence (SqlPersistence / InMemoryPersistence)

Usage:
    from tableside.services.domain import SessionLifecycleManager

    # In router
    lifecycle = SessionLifecycleManager(store)
    started = lifecycle.start_session("1")
"""

from .table_registry import TableRegistry, TableView, UnknownTableError, DuplicateTableError
from .session_lifecycle import (
    SessionLifecycleManager,
    SessionStart,
    TerminalEntry,
    NotATerminalError,
    ConfirmationRequired,
    InvalidCustomerInputError,
    UnknownCustomerError,
)
from .session_guard import SessionGuard, GuardDecision, RecoveryAction, IsolatedSessionCheck, BLOCK_MESSAGES
from .cart_store import CartStore, CartMirror, CartTotals, MenuItem, default_mirror
from .order_lifecycle import (
    OrderLifecycleManager,
    EmptyCartError,
    OrderNotFound,
    OrderTransitionError,
    StaleOrderError,
    OrderArchivedError,
    order_total,
)

__all__ = [
    # Tables
    "TableRegistry",
    "TableView",
    "UnknownTableError",
    "DuplicateTableError",
    # Sessions
    "SessionLifecycleManager",
    "SessionStart",
    "TerminalEntry",
    "NotATerminalError",
    "ConfirmationRequired",
    "InvalidCustomerInputError",
    "UnknownCustomerError",
    # Guard
    "SessionGuard",
    "IsolatedSessionCheck",
    "GuardDecision",
    "RecoveryAction",
    "BLOCK_MESSAGES",
    # Cart
    "CartStore",
    "CartMirror",
    "CartTotals",
    "MenuItem",
    "default_mirror",
    # Orders
    "OrderLifecycleManager",
    "EmptyCartError",
    "OrderNotFound",
    "OrderTransitionError",
    "StaleOrderError",
    "OrderArchivedError",
    "order_total",
]
