"""
Customer order router.

Customers place orders from their cart, send pending orders to the kitchen
and confirm pickup of ready orders. They only ever see their own visit's
orders.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status

from shared.config.constants import Actor, EventType, OrderStatus
from shared.config.logging import order_logger as logger, mask_session_code
from shared.utils.schemas import ErrorResponse, OrderOutput
from tableside.context import RequestContext
from tableside.routers._common import (
    get_cart,
    get_order_manager,
    require_active_session,
    translate_domain_errors,
)
from tableside.services.domain import CartStore, OrderLifecycleManager
from tableside.services.events import notify

router = APIRouter(
    prefix="/api/customer/orders",
    tags=["customer-orders"],
    responses={403: {"model": ErrorResponse, "description": "Session missing or ended"}},
)


def _place(
    cart: CartStore,
    orders: OrderLifecycleManager,
    background_tasks: BackgroundTasks,
    initial_status: str,
) -> OrderOutput:
    with translate_domain_errors("place order"):
        record = orders.create_from_cart(cart, cart.table_number, initial_status=initial_status)
    logger.info(
        "Order placed by customer",
        order_id=record.id,
        table_id=cart.table_number,
        session_code=mask_session_code(cart.session_code),
        status=record.status,
    )
    notify(background_tasks, EventType.ORDER_CHANGED, cart.table_number, cart.session_code, order_id=record.id)
    notify(background_tasks, EventType.CART_CHANGED, cart.table_number, cart.session_code)
    return OrderOutput.model_validate(record)


@router.get("", response_model=list[OrderOutput])
def list_my_orders(
    include_archived: bool = False,
    ctx: RequestContext = Depends(require_active_session),
    orders: OrderLifecycleManager = Depends(get_order_manager),
):
    with translate_domain_errors("list orders"):
        records = orders.list_for_session(ctx, include_archived=include_archived)
    return [OrderOutput.model_validate(r) for r in records]


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def place_order(
    background_tasks: BackgroundTasks,
    cart: CartStore = Depends(get_cart),
    orders: OrderLifecycleManager = Depends(get_order_manager),
):
    """Snapshot the cart into a pending order; the cart is cleared afterwards."""
    return _place(cart, orders, background_tasks, OrderStatus.PENDING)


@router.post("/send-to-kitchen", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def send_cart_to_kitchen(
    background_tasks: BackgroundTasks,
    cart: CartStore = Depends(get_cart),
    orders: OrderLifecycleManager = Depends(get_order_manager),
):
    """Place the cart directly as a preparing order."""
    return _place(cart, orders, background_tasks, OrderStatus.PREPARING)


def _customer_transition(
    order_id: int,
    new_status: str,
    ctx: RequestContext,
    orders: OrderLifecycleManager,
    background_tasks: BackgroundTasks,
) -> OrderOutput:
    with translate_domain_errors("update order"):
        orders.get_for_session(ctx, order_id)
        record = orders.transition(order_id, new_status, actor=Actor.CUSTOMER)
    notify(background_tasks, EventType.ORDER_CHANGED, record.table_number, ctx.session_code, order_id=order_id)
    return OrderOutput.model_validate(record)


@router.post("/{order_id}/send-to-kitchen", response_model=OrderOutput)
def send_order_to_kitchen(
    order_id: int,
    background_tasks: BackgroundTasks,
    ctx: RequestContext = Depends(require_active_session),
    orders: OrderLifecycleManager = Depends(get_order_manager),
):
    """pending -> preparing for one of the visit's own orders."""
    return _customer_transition(order_id, OrderStatus.PREPARING, ctx, orders, background_tasks)


@router.post("/{order_id}/confirm-pickup", response_model=OrderOutput)
def confirm_pickup(
    order_id: int,
    background_tasks: BackgroundTasks,
    ctx: RequestContext = Depends(require_active_session),
    orders: OrderLifecycleManager = Depends(get_order_manager),
):
    """ready -> completed once the customer collected the order."""
    return _customer_transition(order_id, OrderStatus.COMPLETED, ctx, orders, background_tasks)
