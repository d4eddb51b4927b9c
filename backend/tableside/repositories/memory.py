"""
In-memory persistence.

Process-local stand-in used for development and unit tests. A single lock
serializes every operation, which gives mint_session the same atomicity the
SQL unique constraint gives in production. Data is lost on restart, so
production configuration refuses this backend.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from itertools import count

from shared.config.constants import Limits, OrderStatus
from shared.config.logging import get_logger

from .base import Persistence
from .records import (
    CartLine,
    DuplicateRecordError,
    OrderLine,
    OrderRecord,
    SessionCustomerRecord,
    SessionRecord,
    TableRecord,
    new_session_code,
    utcnow,
)

logger = get_logger(__name__)


class InMemoryPersistence(Persistence):
    """Dict-backed store guarded by one re-entrant lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables: dict[str, TableRecord] = {}
        self._sessions: dict[str, SessionRecord] = {}
        self._customers: dict[tuple[str, str], SessionCustomerRecord] = {}
        self._cart: dict[tuple[str, str], CartLine] = {}
        self._orders: dict[int, OrderRecord] = {}
        self._cart_ids = count(1)
        self._order_ids = count(1)

    def reset(self) -> None:
        """Drop every record (test helper)."""
        with self._lock:
            self._tables.clear()
            self._sessions.clear()
            self._customers.clear()
            self._cart.clear()
            self._orders.clear()

    # Tables

    def add_table(self, table: TableRecord) -> TableRecord:
        with self._lock:
            if table.table_id in self._tables:
                raise DuplicateRecordError(f"table {table.table_id} already exists")
            stored = replace(table, created_at=table.created_at or utcnow())
            self._tables[table.table_id] = stored
            return stored

    def get_table(self, table_id: str) -> TableRecord | None:
        with self._lock:
            return self._tables.get(table_id)

    def list_tables(self, table_type: str | None = None) -> list[TableRecord]:
        with self._lock:
            tables = sorted(self._tables.values(), key=lambda t: (t.created_at, t.table_id))
        if table_type:
            tables = [t for t in tables if t.type == table_type]
        return tables

    def delete_table(self, table_id: str) -> bool:
        with self._lock:
            return self._tables.pop(table_id, None) is not None

    def update_table_status(self, table_id: str, status: str) -> TableRecord | None:
        with self._lock:
            table = self._tables.get(table_id)
            if table is None:
                return None
            updated = replace(table, status=status)
            self._tables[table_id] = updated
            return updated

    # Sessions

    def start_session(self, session: SessionRecord, deactivate_prior: bool) -> SessionRecord:
        with self._lock:
            if session.session_code in self._sessions:
                raise DuplicateRecordError("session code collision")
            if deactivate_prior:
                self.deactivate_sessions(session.table_id, only_active=True, ended_at=utcnow())
            stored = replace(session, is_active=True, created_at=session.created_at or utcnow())
            self._sessions[stored.session_code] = stored
            return stored

    def mint_session(self, table_id: str) -> SessionRecord:
        with self._lock:
            for _ in range(Limits.SESSION_CODE_ATTEMPTS):
                code = new_session_code(table_id, terminal=True)
                if code not in self._sessions:
                    record = SessionRecord(session_code=code, table_id=table_id, created_at=utcnow())
                    self._sessions[code] = record
                    return record
            logger.error("Session code collisions exhausted", table_id=table_id)
            raise DuplicateRecordError("could not mint a unique session code")

    def find_session(self, session_code: str) -> SessionRecord | None:
        with self._lock:
            return self._sessions.get(session_code)

    def deactivate_sessions(self, table_id: str, only_active: bool, ended_at: datetime) -> int:
        changed = 0
        with self._lock:
            for code, session in list(self._sessions.items()):
                if session.table_id != table_id:
                    continue
                if session.is_active or (not only_active and session.ended_at is None):
                    self._sessions[code] = replace(session, is_active=False, ended_at=ended_at)
                    changed += 1
        return changed

    def active_sessions(self, table_id: str | None = None) -> list[SessionRecord]:
        with self._lock:
            return [
                s for s in self._sessions.values()
                if s.is_active and (table_id is None or s.table_id == table_id)
            ]

    def touch_session(self, session_code: str, seen_at: datetime, table_id: str | None = None) -> bool:
        with self._lock:
            session = self._sessions.get(session_code)
            if session is None or not session.is_active:
                return False
            if table_id is not None and session.table_id != table_id:
                return False
            self._sessions[session_code] = replace(session, last_seen_at=seen_at)
            return True

    def save_session_customer(self, customer: SessionCustomerRecord) -> SessionCustomerRecord:
        with self._lock:
            key = (customer.table_id, customer.session_code)
            existing = self._customers.get(key)
            created_at = existing.created_at if existing else utcnow()
            self._customers[key] = replace(customer, created_at=created_at)
            return self._customers[key]

    def get_session_customer(self, table_id: str, session_code: str) -> SessionCustomerRecord | None:
        with self._lock:
            return self._customers.get((table_id, session_code))

    def list_session_customers(
        self,
        phone_digits: str | None = None,
        session_code: str | None = None,
        limit: int = Limits.MAX_CUSTOMER_RESULTS,
    ) -> list[SessionCustomerRecord]:
        with self._lock:
            customers = [
                c
                for c in reversed(self._customers.values())
                if (phone_digits is None or phone_digits in c.phone)
                and (session_code is None or c.session_code == session_code)
            ]
        customers.sort(key=lambda c: c.created_at, reverse=True)
        return customers[:limit]

    # Cart

    def list_cart(self, session_id: str) -> list[CartLine]:
        with self._lock:
            lines = [line for (sid, _), line in self._cart.items() if sid == session_id]
        return sorted(lines, key=lambda line: line.id)

    def get_cart_line(self, session_id: str, menu_item_id: str) -> CartLine | None:
        with self._lock:
            return self._cart.get((session_id, menu_item_id))

    def insert_cart_line(self, line: CartLine) -> CartLine:
        key = (line.session_id, line.menu_item_id)
        with self._lock:
            if key in self._cart:
                raise DuplicateRecordError(f"cart line {line.menu_item_id} already exists")
            stored = replace(line, id=next(self._cart_ids), created_at=utcnow())
            self._cart[key] = stored
            return stored

    def update_cart_quantity(self, session_id: str, menu_item_id: str, quantity: int) -> CartLine | None:
        key = (session_id, menu_item_id)
        with self._lock:
            line = self._cart.get(key)
            if line is None:
                return None
            updated = replace(line, quantity=quantity)
            self._cart[key] = updated
            return updated

    def delete_cart_line(self, session_id: str, menu_item_id: str) -> bool:
        with self._lock:
            return self._cart.pop((session_id, menu_item_id), None) is not None

    def delete_cart(self, session_id: str) -> int:
        with self._lock:
            keys = [key for key in self._cart if key[0] == session_id]
            for key in keys:
                del self._cart[key]
            return len(keys)

    # Orders

    def insert_order(
        self,
        table_number: str,
        session_code: str | None,
        status: str,
        total: Decimal,
        estimated_minutes: int | None,
        items: Sequence[OrderLine],
    ) -> OrderRecord:
        with self._lock:
            now = utcnow()
            order = OrderRecord(
                id=next(self._order_ids),
                table_number=table_number,
                session_code=session_code,
                status=status,
                total=total,
                estimated_minutes=estimated_minutes,
                created_at=now,
                updated_at=now,
                items=tuple(items),
            )
            self._orders[order.id] = order
            return order

    def get_order(self, order_id: int) -> OrderRecord | None:
        with self._lock:
            return self._orders.get(order_id)

    def list_orders(
        self,
        table_number: str | None = None,
        session_code: str | None = None,
        statuses: Sequence[str] | None = None,
    ) -> list[OrderRecord]:
        with self._lock:
            orders = list(self._orders.values())
        if table_number is not None:
            orders = [o for o in orders if o.table_number == table_number]
        if session_code is not None:
            orders = [o for o in orders if o.session_code == session_code]
        if statuses is not None:
            orders = [o for o in orders if o.status in statuses]
        return sorted(orders, key=lambda o: o.id, reverse=True)

    def update_order_status(self, order_id: int, expected_status: str, new_status: str) -> OrderRecord | None:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.status != expected_status:
                return None
            updated = replace(order, status=new_status, updated_at=utcnow())
            self._orders[order_id] = updated
            return updated

    def replace_order_items(
        self,
        order_id: int,
        expected_status: str,
        items: Sequence[OrderLine],
        total: Decimal,
    ) -> OrderRecord | None:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.status != expected_status or order.status == OrderStatus.ARCHIVED:
                return None
            updated = replace(order, items=tuple(items), total=total, updated_at=utcnow())
            self._orders[order_id] = updated
            return updated

    # Health

    def ping(self) -> None:
        return None
