"""
Staff order router.

Kitchen and floor staff move orders through the state machine, correct
items and archive completed orders.
"""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from shared.config.constants import Actor, EventType
from shared.config.logging import order_logger as logger
from shared.utils.schemas import OrderItemsReplace, OrderOutput, OrderStatusUpdate
from tableside.repositories import OrderLine
from tableside.routers._common import (
    any_staff,
    floor_staff,
    get_order_manager,
    translate_domain_errors,
)
from tableside.services.domain import OrderLifecycleManager
from tableside.services.events import notify

router = APIRouter(prefix="/api/staff/orders", tags=["staff-orders"])


@router.get("", response_model=list[OrderOutput])
def list_orders(
    table: str | None = Query(default=None, max_length=32),
    include_archived: bool = False,
    orders: OrderLifecycleManager = Depends(get_order_manager),
    ctx: dict[str, Any] = Depends(any_staff),
):
    """Active orders newest first; archived ones only on request."""
    with translate_domain_errors("list orders"):
        records = orders.list_all(table) if include_archived else orders.list_active(table)
    return [OrderOutput.model_validate(r) for r in records]


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    orders: OrderLifecycleManager = Depends(get_order_manager),
    ctx: dict[str, Any] = Depends(any_staff),
):
    with translate_domain_errors("get order"):
        record = orders.get(order_id)
    return OrderOutput.model_validate(record)


@router.patch("/{order_id}/status", response_model=OrderOutput)
def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    orders: OrderLifecycleManager = Depends(get_order_manager),
    ctx: dict[str, Any] = Depends(any_staff),
):
    with translate_domain_errors("update order status"):
        record = orders.transition(order_id, body.status, actor=Actor.STAFF)
    logger.info("Order moved by staff", order_id=order_id, status=record.status, staff_id=ctx["sub"])
    notify(background_tasks, EventType.ORDER_CHANGED, record.table_number, order_id=order_id, status=record.status)
    return OrderOutput.model_validate(record)


@router.put("/{order_id}/items", response_model=OrderOutput)
def replace_order_items(
    order_id: int,
    body: OrderItemsReplace,
    background_tasks: BackgroundTasks,
    orders: OrderLifecycleManager = Depends(get_order_manager),
    ctx: dict[str, Any] = Depends(floor_staff),
):
    items = [
        OrderLine(
            menu_item_id=item.menu_item_id,
            item_name=item.item_name,
            price=item.price,
            quantity=item.quantity,
        )
        for item in body.items
    ]
    with translate_domain_errors("replace order items"):
        record = orders.replace_items(order_id, items)
    logger.info("Order corrected by staff", order_id=order_id, staff_id=ctx["sub"])
    notify(background_tasks, EventType.ORDER_CHANGED, record.table_number, order_id=order_id)
    return OrderOutput.model_validate(record)
