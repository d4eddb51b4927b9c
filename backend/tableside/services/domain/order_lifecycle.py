"""
Order Lifecycle Domain Service.

    pending   -> preparing   (customer "send to kitchen", staff)
    preparing -> ready       (staff)
    preparing -> completed   (staff)
    ready     -> completed   (staff, customer "confirm pickup")
    completed -> archived    (staff)

Orders are created from a cart snapshot and never deleted. Status writes
are compare-and-set on the expected current status; a lost race or a store
error re-fetches the authoritative row into the local view and propagates.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal

from shared.config.constants import (
    Actor,
    OrderStatus,
    can_actor_transition,
    validate_order_transition,
)
from shared.config.logging import get_logger, mask_session_code
from shared.config.settings import settings
from tableside.context import RequestContext
from tableside.repositories import OrderLine, OrderRecord, Persistence, PersistenceError

from .cart_store import CartStore

logger = get_logger(__name__)

_CENT = Decimal("0.01")


class EmptyCartError(Exception):
    """Cannot place an order from an empty cart."""
    pass


class OrderNotFound(Exception):
    """Order does not exist (or is not visible to the caller)."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class OrderTransitionError(Exception):
    """Edge not in the state machine, or actor not allowed to take it."""

    def __init__(self, order_id: int, current: str, new: str, actor: str, actor_denied: bool = False):
        self.order_id = order_id
        self.current = current
        self.new = new
        self.actor = actor
        self.actor_denied = actor_denied
        super().__init__(f"Order {order_id}: {actor} cannot move {current} -> {new}")


class StaleOrderError(Exception):
    """The order changed underneath the caller."""

    def __init__(self, order_id: int, expected: str, actual: str | None):
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Order {order_id} is {actual}, expected {expected}")


class OrderArchivedError(Exception):
    """Archived orders are read-only."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} is archived")


def order_total(items: Sequence[OrderLine]) -> Decimal:
    return sum((item.line_total for item in items), Decimal("0")).quantize(_CENT)


class OrderLifecycleManager:
    """Domain service for order creation, status transitions and listings."""

    def __init__(self, store: Persistence, rng: random.Random | None = None):
        self._store = store
        self._rng = rng or random.Random()
        # Last known state per order, updated optimistically before writes
        self._view: dict[int, OrderRecord] = {}

    @property
    def view(self) -> dict[int, OrderRecord]:
        return dict(self._view)

    def _estimate_minutes(self) -> int:
        return self._rng.randint(settings.order_estimate_min_minutes, settings.order_estimate_max_minutes)

    def _resync(self, order_id: int) -> OrderRecord | None:
        try:
            fresh = self._store.get_order(order_id)
        except PersistenceError as e:
            self._view.pop(order_id, None)
            logger.warning("Order re-fetch failed", order_id=order_id, error=str(e))
            return None
        if fresh is None:
            self._view.pop(order_id, None)
        else:
            self._view[order_id] = fresh
        return fresh

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_from_cart(
        self,
        cart: CartStore,
        table_number: str,
        initial_status: str = OrderStatus.PENDING,
        estimated_minutes: int | None = None,
    ) -> OrderRecord:
        """
        Snapshot the cart into an order, then clear the cart.

        The cart is cleared only after the order write succeeded. A failed
        clear is logged and the order stands.

        Raises:
            ValueError: initial_status is not pending/preparing
            EmptyCartError: nothing to order
        """
        if initial_status not in OrderStatus.INITIAL:
            raise ValueError(f"Orders start as one of {OrderStatus.INITIAL}")

        lines = cart.items()
        if not lines:
            raise EmptyCartError("Cart is empty")

        items = [
            OrderLine(
                menu_item_id=line.menu_item_id,
                item_name=line.item_name,
                price=line.price,
                quantity=line.quantity,
            )
            for line in lines
        ]
        order = self._store.insert_order(
            table_number=table_number,
            session_code=cart.session_code,
            status=initial_status,
            total=order_total(items),
            estimated_minutes=estimated_minutes if estimated_minutes is not None else self._estimate_minutes(),
            items=items,
        )
        self._view[order.id] = order

        try:
            cart.clear()
        except PersistenceError as e:
            logger.error(
                "Cart clear failed after order was placed",
                order_id=order.id,
                table_id=table_number,
                session_code=mask_session_code(cart.session_code),
                error=str(e),
            )

        logger.info(
            "Order placed",
            order_id=order.id,
            table_id=table_number,
            status=order.status,
            total=str(order.total),
            items=len(items),
        )
        return order

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def transition(self, order_id: int, new_status: str, actor: str = Actor.STAFF) -> OrderRecord:
        """
        Move an order along the state machine.

        Raises:
            OrderNotFound
            OrderTransitionError: invalid edge or actor
            StaleOrderError: status changed concurrently
            PersistenceError: store failure (local view re-synced first)
        """
        current = self.get(order_id)

        if not validate_order_transition(current.status, new_status):
            raise OrderTransitionError(order_id, current.status, new_status, actor)
        if not can_actor_transition(current.status, new_status, actor):
            raise OrderTransitionError(order_id, current.status, new_status, actor, actor_denied=True)

        self._view[order_id] = replace(current, status=new_status)
        try:
            updated = self._store.update_order_status(order_id, current.status, new_status)
        except PersistenceError:
            self._resync(order_id)
            raise

        if updated is None:
            fresh = self._resync(order_id)
            if fresh is None:
                raise OrderNotFound(order_id)
            raise StaleOrderError(order_id, current.status, fresh.status)

        self._view[order_id] = updated
        logger.info(
            "Order status changed",
            order_id=order_id,
            from_status=current.status,
            to_status=new_status,
            actor=actor,
        )
        return updated

    def replace_items(self, order_id: int, items: Sequence[OrderLine]) -> OrderRecord:
        """Staff correction: replace every item and recompute the total."""
        if not items:
            raise ValueError("An order needs at least one item")
        current = self.get(order_id)
        if current.status == OrderStatus.ARCHIVED:
            raise OrderArchivedError(order_id)

        try:
            updated = self._store.replace_order_items(order_id, current.status, items, order_total(items))
        except PersistenceError:
            self._resync(order_id)
            raise

        if updated is None:
            fresh = self._resync(order_id)
            if fresh is None:
                raise OrderNotFound(order_id)
            if fresh.status == OrderStatus.ARCHIVED:
                raise OrderArchivedError(order_id)
            raise StaleOrderError(order_id, current.status, fresh.status)

        self._view[order_id] = updated
        logger.info("Order items replaced", order_id=order_id, total=str(updated.total), items=len(items))
        return updated

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, order_id: int) -> OrderRecord:
        """Any order by id, archived included."""
        order = self._store.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        self._view[order_id] = order
        return order

    def get_for_session(self, ctx: RequestContext, order_id: int) -> OrderRecord:
        """An order only if it belongs to this visit."""
        order = self.get(order_id)
        if order.table_number != ctx.table_id or order.session_code != ctx.session_code:
            raise OrderNotFound(order_id)
        return order

    def list_active(self, table_number: str | None = None) -> list[OrderRecord]:
        return self._store.list_orders(table_number=table_number, statuses=OrderStatus.ACTIVE)

    def list_all(self, table_number: str | None = None) -> list[OrderRecord]:
        return self._store.list_orders(table_number=table_number)

    def list_for_session(self, ctx: RequestContext, include_archived: bool = False) -> list[OrderRecord]:
        """A visit's own orders; archived ones only when asked for."""
        return self._store.list_orders(
            table_number=ctx.table_id,
            session_code=ctx.session_code,
            statuses=None if include_archived else OrderStatus.ACTIVE,
        )
