"""
Customer cart router.

Every endpoint is behind the session guard and scoped to the visit's
"{table}-{session}" cart; two sessions at the same table never share a cart.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from shared.config.constants import EventType
from shared.config.settings import settings
from shared.security.rate_limit import limiter
from shared.utils.schemas import CartItemAdd, CartLineOutput, CartOutput, CartQuantityUpdate, ErrorResponse
from tableside.routers._common import get_cart, translate_domain_errors
from tableside.services.domain import CartStore, MenuItem
from tableside.services.events import notify

router = APIRouter(
    prefix="/api/customer/cart",
    tags=["customer-cart"],
    responses={403: {"model": ErrorResponse, "description": "Session missing or ended"}},
)


def _cart_output(cart: CartStore) -> CartOutput:
    lines = cart.items()
    totals = cart.totals(lines)
    return CartOutput(
        table_id=cart.table_number,
        items=[CartLineOutput.model_validate(line) for line in lines],
        total_items=totals.total_items,
        total_price=totals.total_price,
    )


def _changed(background_tasks: BackgroundTasks, cart: CartStore) -> None:
    notify(background_tasks, EventType.CART_CHANGED, cart.table_number, cart.session_code)


@router.get("", response_model=CartOutput)
def get_cart_contents(cart: CartStore = Depends(get_cart)):
    with translate_domain_errors("read cart"):
        return _cart_output(cart)


@router.post("/items", response_model=CartOutput)
@limiter.limit(settings.cart_rate_limit)
def add_item(
    request: Request,
    body: CartItemAdd,
    background_tasks: BackgroundTasks,
    cart: CartStore = Depends(get_cart),
):
    """Add one unit of a menu item."""
    with translate_domain_errors("add to cart"):
        cart.add(
            MenuItem(
                menu_item_id=body.menu_item_id,
                item_name=body.item_name,
                price=body.price,
                item_image=body.item_image,
            )
        )
        output = _cart_output(cart)
    _changed(background_tasks, cart)
    return output


@router.put("/items/{menu_item_id}", response_model=CartOutput)
@limiter.limit(settings.cart_rate_limit)
def set_item_quantity(
    request: Request,
    menu_item_id: str,
    body: CartQuantityUpdate,
    background_tasks: BackgroundTasks,
    cart: CartStore = Depends(get_cart),
):
    """Overwrite a line's quantity; 0 removes it."""
    with translate_domain_errors("update cart"):
        cart.set_quantity(menu_item_id, body.quantity)
        output = _cart_output(cart)
    _changed(background_tasks, cart)
    return output


@router.delete("/items/{menu_item_id}", response_model=CartOutput)
@limiter.limit(settings.cart_rate_limit)
def remove_item(
    request: Request,
    menu_item_id: str,
    background_tasks: BackgroundTasks,
    cart: CartStore = Depends(get_cart),
):
    """Remove one unit; the line disappears when it reaches zero."""
    with translate_domain_errors("remove from cart"):
        cart.remove(menu_item_id)
        output = _cart_output(cart)
    _changed(background_tasks, cart)
    return output


@router.delete("", response_model=CartOutput)
def clear_cart(background_tasks: BackgroundTasks, cart: CartStore = Depends(get_cart)):
    with translate_domain_errors("clear cart"):
        cart.clear()
        output = _cart_output(cart)
    _changed(background_tasks, cart)
    return output
