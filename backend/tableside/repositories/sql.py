"""
SQLAlchemy-backed persistence.

Wraps one Session per request. Driver-level connectivity failures and
timeouts are translated to PersistenceUnavailableError so callers can fail
closed; unique violations become DuplicateRecordError.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, or_, select, text, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, selectinload

from shared.config.constants import Limits, OrderStatus
from shared.config.logging import get_logger, mask_session_code
from shared.infrastructure.db import safe_commit
from tableside.models import CartItem, DiningTable, Order, OrderItem, SessionCustomer, TableSession

from .base import Persistence
from .records import (
    CartLine,
    DuplicateRecordError,
    OrderLine,
    OrderRecord,
    PersistenceUnavailableError,
    SessionCustomerRecord,
    SessionRecord,
    TableRecord,
    new_session_code,
    utcnow,
)

logger = get_logger(__name__)

_CENT = Decimal("0.01")


def _money(value: Decimal | float | int) -> Decimal:
    return Decimal(str(value)).quantize(_CENT)


def _table_record(row: DiningTable) -> TableRecord:
    return TableRecord(
        table_id=row.table_id,
        name=row.name,
        type=row.type,
        seats=row.seats,
        status=row.status,
        created_at=row.created_at,
    )


def _session_record(row: TableSession) -> SessionRecord:
    return SessionRecord(
        session_code=row.session_code,
        table_id=row.table_id,
        is_active=row.is_active,
        created_at=row.created_at,
        ended_at=row.ended_at,
        last_seen_at=row.last_seen_at,
        menu_url=row.menu_url,
        qr_code_data=row.qr_code_data,
    )


def _customer_record(row: SessionCustomer) -> SessionCustomerRecord:
    return SessionCustomerRecord(
        table_id=row.table_id,
        session_code=row.session_code,
        name=row.name,
        phone=row.phone,
        created_at=row.created_at,
    )


def _cart_line(row: CartItem) -> CartLine:
    return CartLine(
        id=row.id,
        session_id=row.session_id,
        table_number=row.table_number,
        menu_item_id=row.menu_item_id,
        item_name=row.item_name,
        price=_money(row.price),
        quantity=row.quantity,
        item_image=row.item_image,
        created_at=row.created_at,
    )


def _order_record(row: Order) -> OrderRecord:
    return OrderRecord(
        id=row.id,
        table_number=row.table_number,
        session_code=row.session_code,
        status=row.status,
        total=_money(row.total),
        estimated_minutes=row.estimated_minutes,
        created_at=row.created_at,
        updated_at=row.updated_at,
        items=tuple(
            OrderLine(
                menu_item_id=item.menu_item_id,
                item_name=item.item_name,
                price=_money(item.price),
                quantity=item.quantity,
            )
            for item in row.items
        ),
    )


def _order_items(items: Sequence[OrderLine]) -> list[OrderItem]:
    return [
        OrderItem(
            position=position,
            menu_item_id=line.menu_item_id,
            item_name=line.item_name,
            price=line.price,
            quantity=line.quantity,
        )
        for position, line in enumerate(items)
    ]


class SqlPersistence(Persistence):
    """Persistence over a SQLAlchemy Session (PostgreSQL in production, SQLite in tests)."""

    def __init__(self, db: Session):
        self._db = db

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self._db.rollback()
            raise DuplicateRecordError(f"{operation}: unique constraint violated") from e
        except (OperationalError, InterfaceError, PoolTimeoutError) as e:
            self._db.rollback()
            logger.error("Persistence backend unavailable", operation=operation, error=str(e))
            raise PersistenceUnavailableError(f"{operation} failed: backend unavailable") from e

    def close(self) -> None:
        self._db.close()

    # Tables

    def add_table(self, table: TableRecord) -> TableRecord:
        with self._translate_errors("add_table"):
            row = DiningTable(
                table_id=table.table_id,
                name=table.name,
                type=table.type,
                seats=table.seats,
                status=table.status,
            )
            self._db.add(row)
            safe_commit(self._db)
            self._db.refresh(row)
            return _table_record(row)

    def get_table(self, table_id: str) -> TableRecord | None:
        with self._translate_errors("get_table"):
            row = self._db.scalar(select(DiningTable).where(DiningTable.table_id == table_id))
            return _table_record(row) if row else None

    def list_tables(self, table_type: str | None = None) -> list[TableRecord]:
        with self._translate_errors("list_tables"):
            query = select(DiningTable).order_by(DiningTable.id)
            if table_type:
                query = query.where(DiningTable.type == table_type)
            return [_table_record(row) for row in self._db.scalars(query)]

    def delete_table(self, table_id: str) -> bool:
        with self._translate_errors("delete_table"):
            result = self._db.execute(delete(DiningTable).where(DiningTable.table_id == table_id))
            safe_commit(self._db)
            return result.rowcount > 0

    def update_table_status(self, table_id: str, status: str) -> TableRecord | None:
        with self._translate_errors("update_table_status"):
            row = self._db.scalar(select(DiningTable).where(DiningTable.table_id == table_id))
            if row is None:
                return None
            row.status = status
            safe_commit(self._db)
            self._db.refresh(row)
            return _table_record(row)

    # Sessions

    def start_session(self, session: SessionRecord, deactivate_prior: bool) -> SessionRecord:
        with self._translate_errors("start_session"):
            if deactivate_prior:
                self._db.execute(
                    update(TableSession)
                    .where(TableSession.table_id == session.table_id)
                    .where(TableSession.is_active.is_(True))
                    .values(is_active=False, ended_at=utcnow())
                )
            row = TableSession(
                table_id=session.table_id,
                session_code=session.session_code,
                is_active=True,
                menu_url=session.menu_url,
                qr_code_data=session.qr_code_data,
            )
            self._db.add(row)
            safe_commit(self._db)
            self._db.refresh(row)
            return _session_record(row)

    def mint_session(self, table_id: str) -> SessionRecord:
        for attempt in range(1, Limits.SESSION_CODE_ATTEMPTS + 1):
            code = new_session_code(table_id, terminal=True)
            try:
                with self._translate_errors("mint_session"):
                    row = TableSession(table_id=table_id, session_code=code, is_active=True)
                    self._db.add(row)
                    safe_commit(self._db)
                    self._db.refresh(row)
                    return _session_record(row)
            except DuplicateRecordError:
                logger.warning(
                    "Session code collision, retrying",
                    table_id=table_id,
                    session_code=mask_session_code(code),
                    attempt=attempt,
                )
        logger.error("Session code collisions exhausted", table_id=table_id)
        raise DuplicateRecordError("could not mint a unique session code")

    def find_session(self, session_code: str) -> SessionRecord | None:
        with self._translate_errors("find_session"):
            row = self._db.scalar(select(TableSession).where(TableSession.session_code == session_code))
            return _session_record(row) if row else None

    def deactivate_sessions(self, table_id: str, only_active: bool, ended_at: datetime) -> int:
        with self._translate_errors("deactivate_sessions"):
            stmt = update(TableSession).where(TableSession.table_id == table_id)
            if only_active:
                stmt = stmt.where(TableSession.is_active.is_(True))
            else:
                stmt = stmt.where(
                    or_(TableSession.is_active.is_(True), TableSession.ended_at.is_(None))
                )
            result = self._db.execute(
                stmt.values(is_active=False, ended_at=ended_at).execution_options(
                    synchronize_session=False
                )
            )
            safe_commit(self._db)
            return result.rowcount

    def active_sessions(self, table_id: str | None = None) -> list[SessionRecord]:
        with self._translate_errors("active_sessions"):
            query = select(TableSession).where(TableSession.is_active.is_(True)).order_by(TableSession.id)
            if table_id is not None:
                query = query.where(TableSession.table_id == table_id)
            return [_session_record(row) for row in self._db.scalars(query)]

    def touch_session(self, session_code: str, seen_at: datetime, table_id: str | None = None) -> bool:
        with self._translate_errors("touch_session"):
            stmt = (
                update(TableSession)
                .where(TableSession.session_code == session_code)
                .where(TableSession.is_active.is_(True))
            )
            if table_id is not None:
                stmt = stmt.where(TableSession.table_id == table_id)
            result = self._db.execute(
                stmt.values(last_seen_at=seen_at)
                .execution_options(synchronize_session=False)
            )
            safe_commit(self._db)
            return result.rowcount > 0

    def save_session_customer(self, customer: SessionCustomerRecord) -> SessionCustomerRecord:
        with self._translate_errors("save_session_customer"):
            row = self._db.scalar(
                select(SessionCustomer)
                .where(SessionCustomer.table_id == customer.table_id)
                .where(SessionCustomer.session_code == customer.session_code)
            )
            if row is None:
                row = SessionCustomer(table_id=customer.table_id, session_code=customer.session_code)
                self._db.add(row)
            row.name = customer.name
            row.phone = customer.phone
            safe_commit(self._db)
            self._db.refresh(row)
            return _customer_record(row)

    def get_session_customer(self, table_id: str, session_code: str) -> SessionCustomerRecord | None:
        with self._translate_errors("get_session_customer"):
            row = self._db.scalar(
                select(SessionCustomer)
                .where(SessionCustomer.table_id == table_id)
                .where(SessionCustomer.session_code == session_code)
            )
            return _customer_record(row) if row is not None else None

    def list_session_customers(
        self,
        phone_digits: str | None = None,
        session_code: str | None = None,
        limit: int = Limits.MAX_CUSTOMER_RESULTS,
    ) -> list[SessionCustomerRecord]:
        with self._translate_errors("list_session_customers"):
            stmt = select(SessionCustomer)
            if phone_digits is not None:
                stmt = stmt.where(SessionCustomer.phone.contains(phone_digits, autoescape=True))
            if session_code is not None:
                stmt = stmt.where(SessionCustomer.session_code == session_code)
            stmt = stmt.order_by(SessionCustomer.created_at.desc(), SessionCustomer.id.desc()).limit(limit)
            return [_customer_record(row) for row in self._db.scalars(stmt)]

    # Cart

    def _cart_row(self, session_id: str, menu_item_id: str) -> CartItem | None:
        return self._db.scalar(
            select(CartItem)
            .where(CartItem.session_id == session_id)
            .where(CartItem.menu_item_id == menu_item_id)
        )

    def list_cart(self, session_id: str) -> list[CartLine]:
        with self._translate_errors("list_cart"):
            rows = self._db.scalars(
                select(CartItem).where(CartItem.session_id == session_id).order_by(CartItem.id)
            )
            return [_cart_line(row) for row in rows]

    def get_cart_line(self, session_id: str, menu_item_id: str) -> CartLine | None:
        with self._translate_errors("get_cart_line"):
            row = self._cart_row(session_id, menu_item_id)
            return _cart_line(row) if row else None

    def insert_cart_line(self, line: CartLine) -> CartLine:
        with self._translate_errors("insert_cart_line"):
            row = CartItem(
                session_id=line.session_id,
                table_number=line.table_number,
                menu_item_id=line.menu_item_id,
                item_name=line.item_name,
                price=line.price,
                quantity=line.quantity,
                item_image=line.item_image,
            )
            self._db.add(row)
            safe_commit(self._db)
            self._db.refresh(row)
            return _cart_line(row)

    def update_cart_quantity(self, session_id: str, menu_item_id: str, quantity: int) -> CartLine | None:
        with self._translate_errors("update_cart_quantity"):
            row = self._cart_row(session_id, menu_item_id)
            if row is None:
                return None
            row.quantity = quantity
            safe_commit(self._db)
            self._db.refresh(row)
            return _cart_line(row)

    def delete_cart_line(self, session_id: str, menu_item_id: str) -> bool:
        with self._translate_errors("delete_cart_line"):
            result = self._db.execute(
                delete(CartItem)
                .where(CartItem.session_id == session_id)
                .where(CartItem.menu_item_id == menu_item_id)
            )
            safe_commit(self._db)
            return result.rowcount > 0

    def delete_cart(self, session_id: str) -> int:
        with self._translate_errors("delete_cart"):
            result = self._db.execute(delete(CartItem).where(CartItem.session_id == session_id))
            safe_commit(self._db)
            return result.rowcount

    # Orders

    def _order_row(self, order_id: int) -> Order | None:
        return self._db.scalar(
            select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        )

    def insert_order(
        self,
        table_number: str,
        session_code: str | None,
        status: str,
        total: Decimal,
        estimated_minutes: int | None,
        items: Sequence[OrderLine],
    ) -> OrderRecord:
        with self._translate_errors("insert_order"):
            row = Order(
                table_number=table_number,
                session_code=session_code,
                status=status,
                total=total,
                estimated_minutes=estimated_minutes,
                items=_order_items(items),
            )
            self._db.add(row)
            safe_commit(self._db)
            return _order_record(self._order_row(row.id))

    def get_order(self, order_id: int) -> OrderRecord | None:
        with self._translate_errors("get_order"):
            row = self._order_row(order_id)
            return _order_record(row) if row else None

    def list_orders(
        self,
        table_number: str | None = None,
        session_code: str | None = None,
        statuses: Sequence[str] | None = None,
    ) -> list[OrderRecord]:
        with self._translate_errors("list_orders"):
            query = select(Order).options(selectinload(Order.items)).order_by(Order.id.desc())
            if table_number is not None:
                query = query.where(Order.table_number == table_number)
            if session_code is not None:
                query = query.where(Order.session_code == session_code)
            if statuses is not None:
                query = query.where(Order.status.in_(list(statuses)))
            return [_order_record(row) for row in self._db.scalars(query)]

    def update_order_status(self, order_id: int, expected_status: str, new_status: str) -> OrderRecord | None:
        with self._translate_errors("update_order_status"):
            result = self._db.execute(
                update(Order)
                .where(Order.id == order_id)
                .where(Order.status == expected_status)
                .values(status=new_status, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            safe_commit(self._db)
            if result.rowcount == 0:
                return None
            self._db.expire_all()
            return _order_record(self._order_row(order_id))

    def replace_order_items(
        self,
        order_id: int,
        expected_status: str,
        items: Sequence[OrderLine],
        total: Decimal,
    ) -> OrderRecord | None:
        with self._translate_errors("replace_order_items"):
            result = self._db.execute(
                update(Order)
                .where(Order.id == order_id)
                .where(Order.status == expected_status)
                .where(Order.status != OrderStatus.ARCHIVED)
                .values(total=total, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self._db.rollback()
                return None
            self._db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
            self._db.add_all(
                [_with_order(item, order_id) for item in _order_items(items)]
            )
            safe_commit(self._db)
            self._db.expire_all()
            return _order_record(self._order_row(order_id))

    # Health

    def ping(self) -> None:
        with self._translate_errors("ping"):
            self._db.execute(text("SELECT 1"))


def _with_order(item: OrderItem, order_id: int) -> OrderItem:
    item.order_id = order_id
    return item
