"""
Persistence capability interface.

Every stateful component talks to one of these. The concrete backend
(SqlPersistence or InMemoryPersistence) is chosen once at startup from
settings.persistence_backend; nothing branches on "is the real backend
configured" at call time.

All methods raise PersistenceUnavailableError when the backend cannot be
reached and DuplicateRecordError on unique-key collisions.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from shared.config.constants import Limits

from .records import (
    CartLine,
    OrderLine,
    OrderRecord,
    SessionCustomerRecord,
    SessionRecord,
    TableRecord,
)


class Persistence(ABC):
    """Abstract store for tables, sessions, carts and orders."""

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    @abstractmethod
    def add_table(self, table: TableRecord) -> TableRecord:
        ...

    @abstractmethod
    def get_table(self, table_id: str) -> TableRecord | None:
        ...

    @abstractmethod
    def list_tables(self, table_type: str | None = None) -> list[TableRecord]:
        ...

    @abstractmethod
    def delete_table(self, table_id: str) -> bool:
        ...

    @abstractmethod
    def update_table_status(self, table_id: str, status: str) -> TableRecord | None:
        ...

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    @abstractmethod
    def start_session(self, session: SessionRecord, deactivate_prior: bool) -> SessionRecord:
        """
        Insert an active session, optionally deactivating the table's
        currently active sessions in the same write.
        """
        ...

    @abstractmethod
    def mint_session(self, table_id: str) -> SessionRecord:
        """
        Atomically create a fresh active terminal session for one visit.

        Concurrent callers never receive the same code.
        """
        ...

    @abstractmethod
    def find_session(self, session_code: str) -> SessionRecord | None:
        ...

    @abstractmethod
    def deactivate_sessions(self, table_id: str, only_active: bool, ended_at: datetime) -> int:
        """
        Mark a table's sessions inactive and stamp ended_at.

        only_active=True touches rows currently active. only_active=False also
        stamps historical rows that were never closed. Returns rows changed.
        """
        ...

    @abstractmethod
    def active_sessions(self, table_id: str | None = None) -> list[SessionRecord]:
        ...

    @abstractmethod
    def touch_session(self, session_code: str, seen_at: datetime, table_id: str | None = None) -> bool:
        """Update last_seen_at of an active session (of table_id, when given). False otherwise."""
        ...

    @abstractmethod
    def save_session_customer(self, customer: SessionCustomerRecord) -> SessionCustomerRecord:
        ...

    @abstractmethod
    def get_session_customer(self, table_id: str, session_code: str) -> SessionCustomerRecord | None:
        ...

    @abstractmethod
    def list_session_customers(
        self,
        phone_digits: str | None = None,
        session_code: str | None = None,
        limit: int = Limits.MAX_CUSTOMER_RESULTS,
    ) -> list[SessionCustomerRecord]:
        """
        Terminal visitors newest first.

        phone_digits matches anywhere inside the stored digits, so a search
        without the country code still finds the visitor.
        """
        ...

    # -------------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------------

    @abstractmethod
    def list_cart(self, session_id: str) -> list[CartLine]:
        """Lines of one cart in creation order."""
        ...

    @abstractmethod
    def get_cart_line(self, session_id: str, menu_item_id: str) -> CartLine | None:
        ...

    @abstractmethod
    def insert_cart_line(self, line: CartLine) -> CartLine:
        ...

    @abstractmethod
    def update_cart_quantity(self, session_id: str, menu_item_id: str, quantity: int) -> CartLine | None:
        ...

    @abstractmethod
    def delete_cart_line(self, session_id: str, menu_item_id: str) -> bool:
        ...

    @abstractmethod
    def delete_cart(self, session_id: str) -> int:
        ...

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    @abstractmethod
    def insert_order(
        self,
        table_number: str,
        session_code: str | None,
        status: str,
        total: Decimal,
        estimated_minutes: int | None,
        items: Sequence[OrderLine],
    ) -> OrderRecord:
        """Persist an order and its item snapshot in one write."""
        ...

    @abstractmethod
    def get_order(self, order_id: int) -> OrderRecord | None:
        ...

    @abstractmethod
    def list_orders(
        self,
        table_number: str | None = None,
        session_code: str | None = None,
        statuses: Sequence[str] | None = None,
    ) -> list[OrderRecord]:
        """Orders newest first."""
        ...

    @abstractmethod
    def update_order_status(self, order_id: int, expected_status: str, new_status: str) -> OrderRecord | None:
        """
        Compare-and-set on status.

        Returns None when the order is missing or its status is no longer
        expected_status.
        """
        ...

    @abstractmethod
    def replace_order_items(
        self,
        order_id: int,
        expected_status: str,
        items: Sequence[OrderLine],
        total: Decimal,
    ) -> OrderRecord | None:
        """Replace every item and the total; same compare-and-set contract."""
        ...

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    @abstractmethod
    def ping(self) -> None:
        """Raise PersistenceUnavailableError if the backend cannot serve requests."""
        ...

    def close(self) -> None:
        """Release per-request resources."""
