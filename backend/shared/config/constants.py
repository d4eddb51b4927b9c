"""
Centralized constants for the backend application.
Avoids magic strings for table types, statuses and order transitions.

Usage:
    from shared.config.constants import OrderStatus, ORDER_TRANSITIONS

    if new_status in ORDER_TRANSITIONS[order.status]:
        ...
"""

from typing import Final


# =============================================================================
# Staff Roles
# =============================================================================


class Roles:
    """Staff role constants (carried in the auth provider's token)."""

    ADMIN: Final[str] = "ADMIN"
    MANAGER: Final[str] = "MANAGER"
    KITCHEN: Final[str] = "KITCHEN"
    WAITER: Final[str] = "WAITER"

    ALL: Final[list[str]] = [ADMIN, MANAGER, KITCHEN, WAITER]


MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER})
ALL_STAFF_ROLES: Final[frozenset[str]] = frozenset(Roles.ALL)


class Actor:
    """Who is asking for an order transition."""

    CUSTOMER: Final[str] = "customer"
    STAFF: Final[str] = "staff"


# =============================================================================
# Table Constants
# =============================================================================


class TableType:
    """Table type constants."""

    REGULAR: Final[str] = "regular"
    TERMINAL: Final[str] = "terminal"

    ALL: Final[list[str]] = [REGULAR, TERMINAL]


class TableStatus:
    """Advisory table status, not enforced against sessions."""

    AVAILABLE: Final[str] = "available"
    OCCUPIED: Final[str] = "occupied"
    RESERVED: Final[str] = "reserved"

    ALL: Final[list[str]] = [AVAILABLE, OCCUPIED, RESERVED]


# =============================================================================
# Order Status
# =============================================================================


class OrderStatus:
    """Order status constants."""

    PENDING: Final[str] = "pending"
    PREPARING: Final[str] = "preparing"
    READY: Final[str] = "ready"
    COMPLETED: Final[str] = "completed"
    ARCHIVED: Final[str] = "archived"

    ALL: Final[list[str]] = [PENDING, PREPARING, READY, COMPLETED, ARCHIVED]
    # Everything a default listing shows
    ACTIVE: Final[list[str]] = [PENDING, PREPARING, READY, COMPLETED]
    # Statuses an order may be created with
    INITIAL: Final[list[str]] = [PENDING, PREPARING]


# Valid order status transitions (from -> [allowed to states])
ORDER_TRANSITIONS: Final[dict[str, list[str]]] = {
    OrderStatus.PENDING: [OrderStatus.PREPARING],
    OrderStatus.PREPARING: [OrderStatus.READY, OrderStatus.COMPLETED],
    OrderStatus.READY: [OrderStatus.COMPLETED],
    OrderStatus.COMPLETED: [OrderStatus.ARCHIVED],
    OrderStatus.ARCHIVED: [],  # Terminal state
}

# Who may trigger each edge
ORDER_TRANSITION_ACTORS: Final[dict[tuple[str, str], frozenset[str]]] = {
    # Customer "send to kitchen" or staff
    (OrderStatus.PENDING, OrderStatus.PREPARING): frozenset({Actor.CUSTOMER, Actor.STAFF}),
    (OrderStatus.PREPARING, OrderStatus.READY): frozenset({Actor.STAFF}),
    # Staff, or customer "confirm pickup"
    (OrderStatus.READY, OrderStatus.COMPLETED): frozenset({Actor.CUSTOMER, Actor.STAFF}),
    # Staff shortcut bypassing "ready"
    (OrderStatus.PREPARING, OrderStatus.COMPLETED): frozenset({Actor.STAFF}),
    (OrderStatus.COMPLETED, OrderStatus.ARCHIVED): frozenset({Actor.STAFF}),
}


def validate_order_transition(current_status: str, new_status: str) -> bool:
    """Check whether current_status -> new_status is an edge of the state machine."""
    return new_status in ORDER_TRANSITIONS.get(current_status, [])


def can_actor_transition(current_status: str, new_status: str, actor: str) -> bool:
    """Check whether the actor may trigger current_status -> new_status."""
    if not validate_order_transition(current_status, new_status):
        return False
    return actor in ORDER_TRANSITION_ACTORS.get((current_status, new_status), frozenset())


# =============================================================================
# Session Guard
# =============================================================================


class GuardState:
    """Session guard states."""

    LOADING: Final[str] = "loading"
    ALLOWED: Final[str] = "allowed"
    BLOCKED: Final[str] = "blocked"


class BlockReason:
    """Why the guard blocked a customer screen."""

    NO_SESSION: Final[str] = "no_session"
    SESSION_ENDED: Final[str] = "session_ended"


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 99

    MIN_PHONE_DIGITS: Final[int] = 10
    MAX_PHONE_DIGITS: Final[int] = 15

    MAX_NAME_LENGTH: Final[int] = 100
    MAX_TABLE_ID_LENGTH: Final[int] = 32
    MAX_SEATS: Final[int] = 50

    MAX_ESTIMATED_MINUTES: Final[int] = 240

    MAX_CUSTOMER_RESULTS: Final[int] = 100

    # Retries when a freshly generated session code collides
    SESSION_CODE_ATTEMPTS: Final[int] = 3


# =============================================================================
# Event Types (for Redis change notifications)
# =============================================================================


class EventType:
    """Change notification types. Every event is a re-fetch hint, never a delta."""

    SESSION_STARTED: Final[str] = "SESSION_STARTED"
    SESSION_ENDED: Final[str] = "SESSION_ENDED"
    CART_CHANGED: Final[str] = "CART_CHANGED"
    ORDER_CHANGED: Final[str] = "ORDER_CHANGED"
    TABLE_CHANGED: Final[str] = "TABLE_CHANGED"

    ALL: Final[list[str]] = [
        SESSION_STARTED,
        SESSION_ENDED,
        CART_CHANGED,
        ORDER_CHANGED,
        TABLE_CHANGED,
    ]
