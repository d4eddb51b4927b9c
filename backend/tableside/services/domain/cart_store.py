"""
Cart Store Domain Service.

A cart belongs to exactly one (table, session) pair: its rows are keyed by
"{table}-{session_code}". Mutations write through to the primary store and
then refresh a process-local mirror from the rows the store confirmed. The
mirror only serves reads while the primary is unreachable; mutations never
fall back to it. Concurrent writers on the same session are last-write-wins
per row.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal

from shared.config.constants import Limits
from shared.config.logging import cart_logger as logger, mask_session_code
from shared.utils.validators import sanitize_text, validate_quantity
from tableside.context import RequestContext
from tableside.repositories import (
    CartLine,
    DuplicateRecordError,
    Persistence,
    PersistenceUnavailableError,
)


@dataclass(frozen=True)
class MenuItem:
    menu_item_id: str
    item_name: str
    price: Decimal
    item_image: str | None = None


@dataclass(frozen=True)
class CartTotals:
    total_items: int
    total_price: Decimal


class CartMirror:
    """Bounded process-local copy of recently confirmed carts."""

    def __init__(self, max_carts: int = 1024):
        self._max_carts = max_carts
        self._carts: OrderedDict[str, tuple[CartLine, ...]] = OrderedDict()
        self._lock = threading.Lock()

    def put(self, session_id: str, lines: list[CartLine]) -> None:
        with self._lock:
            self._carts[session_id] = tuple(lines)
            self._carts.move_to_end(session_id)
            while len(self._carts) > self._max_carts:
                self._carts.popitem(last=False)

    def get(self, session_id: str) -> list[CartLine] | None:
        with self._lock:
            lines = self._carts.get(session_id)
        return list(lines) if lines is not None else None

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._carts.pop(session_id, None)


default_mirror = CartMirror()


class CartStore:
    """Cart operations for one guarded RequestContext."""

    def __init__(
        self,
        store: Persistence,
        ctx: RequestContext,
        mirror: CartMirror | None = None,
    ):
        if not ctx.has_session:
            raise ValueError("CartStore requires a table and a session code")
        self._store = store
        self._ctx = ctx
        self._mirror = mirror if mirror is not None else default_mirror
        self.session_id = ctx.cart_session_id

    @property
    def table_number(self) -> str:
        return self._ctx.table_id

    @property
    def session_code(self) -> str:
        return self._ctx.session_code

    def _refresh(self) -> None:
        try:
            self._mirror.put(self.session_id, self._store.list_cart(self.session_id))
        except PersistenceUnavailableError:
            self._mirror.discard(self.session_id)
            logger.warning(
                "Cart mirror refresh failed",
                table_id=self.table_number,
                session_code=mask_session_code(self.session_code),
            )

    # Reads

    def items(self) -> list[CartLine]:
        """Lines in creation order; served from the mirror only if the primary is down."""
        try:
            lines = self._store.list_cart(self.session_id)
        except PersistenceUnavailableError:
            cached = self._mirror.get(self.session_id)
            if cached is None:
                raise
            logger.warning(
                "Serving cart from local mirror",
                table_id=self.table_number,
                session_code=mask_session_code(self.session_code),
            )
            return cached
        self._mirror.put(self.session_id, lines)
        return lines

    def totals(self, lines: list[CartLine] | None = None) -> CartTotals:
        lines = self.items() if lines is None else lines
        return CartTotals(
            total_items=sum(line.quantity for line in lines),
            total_price=sum((line.line_total for line in lines), Decimal("0.00")),
        )

    # Mutations

    def add(self, item: MenuItem) -> CartLine:
        """Add one unit: bump an existing line or insert a new one."""
        existing = self._store.get_cart_line(self.session_id, item.menu_item_id)
        if existing is not None:
            return self.set_quantity(item.menu_item_id, existing.quantity + 1)

        if item.price < 0:
            raise ValueError("Price must not be negative")
        line = CartLine(
            session_id=self.session_id,
            table_number=self.table_number,
            menu_item_id=item.menu_item_id,
            item_name=sanitize_text(item.item_name) or item.menu_item_id,
            price=item.price,
            quantity=1,
            item_image=item.item_image,
        )
        try:
            stored = self._store.insert_cart_line(line)
        except DuplicateRecordError:
            # Another device of the same visit inserted it first
            current = self._store.get_cart_line(self.session_id, item.menu_item_id)
            return self.set_quantity(item.menu_item_id, (current.quantity if current else 0) + 1)

        self._refresh()
        logger.debug("Cart line added", session_code=mask_session_code(self.session_code), menu_item_id=item.menu_item_id)
        return stored

    def remove(self, menu_item_id: str) -> CartLine | None:
        """Remove one unit. The line disappears at zero; a missing line is a no-op."""
        existing = self._store.get_cart_line(self.session_id, menu_item_id)
        if existing is None:
            return None
        return self.set_quantity(menu_item_id, existing.quantity - 1)

    def set_quantity(self, menu_item_id: str, quantity: int) -> CartLine | None:
        """Overwrite a line's quantity; zero or less deletes it."""
        if quantity <= 0:
            self._store.delete_cart_line(self.session_id, menu_item_id)
            self._refresh()
            return None

        validate_quantity(quantity, max_val=Limits.MAX_QUANTITY)
        updated = self._store.update_cart_quantity(self.session_id, menu_item_id, quantity)
        self._refresh()
        return updated

    def clear(self) -> int:
        removed = self._store.delete_cart(self.session_id)
        self._mirror.put(self.session_id, [])
        logger.info(
            "Cart cleared",
            table_id=self.table_number,
            session_code=mask_session_code(self.session_code),
            lines_removed=removed,
        )
        return removed
