"""
Plain records exchanged with the persistence layer.

Services never see ORM instances: both backends return these frozen
dataclasses, so the in-memory store and the SQL store are interchangeable.
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

_CODE_ALPHABET = string.ascii_lowercase + string.digits
_CODE_RANDOM_LENGTH = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_session_code(table_id: str, terminal: bool = False) -> str:
    """
    Opaque, unguessable session code.

    Format is "{table_id}-{epoch_ms}-{random}" ("terminal-" prefixed for
    terminal visits). Only uniqueness matters to callers; the parts are kept
    readable for support staff reading logs.
    """
    random_part = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(_CODE_RANDOM_LENGTH))
    code = f"{table_id}-{int(time.time() * 1000)}-{random_part}"
    return f"terminal-{code}" if terminal else code


def derive_cart_session_id(table_number: str, session_code: str) -> str:
    """Cart scope key. Never the table number alone."""
    return f"{table_number}-{session_code}"


class PersistenceError(Exception):
    """Base class for persistence collaborator errors."""


class PersistenceUnavailableError(PersistenceError):
    """Backend unreachable, timed out or not configured."""


class DuplicateRecordError(PersistenceError):
    """A unique key (table_id, session_code, cart line) already exists."""


@dataclass(frozen=True)
class TableRecord:
    table_id: str
    name: str
    type: str = "regular"
    seats: int | None = None
    status: str = "available"
    created_at: datetime | None = None


@dataclass(frozen=True)
class SessionRecord:
    session_code: str
    table_id: str
    is_active: bool = True
    created_at: datetime | None = None
    ended_at: datetime | None = None
    last_seen_at: datetime | None = None
    menu_url: str | None = None
    qr_code_data: str | None = None


@dataclass(frozen=True)
class SessionCustomerRecord:
    table_id: str
    session_code: str
    name: str
    phone: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class CartLine:
    session_id: str
    table_number: str
    menu_item_id: str
    item_name: str
    price: Decimal
    quantity: int
    item_image: str | None = None
    id: int | None = None
    created_at: datetime | None = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class OrderLine:
    menu_item_id: str
    item_name: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class OrderRecord:
    id: int
    table_number: str
    status: str
    total: Decimal
    session_code: str | None = None
    estimated_minutes: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: tuple[OrderLine, ...] = field(default_factory=tuple)
