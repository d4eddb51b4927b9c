"""
Shared FastAPI dependencies for the tableside routers.
"""

from collections.abc import Callable
from typing import Any

from fastapi import Depends

from shared.config.constants import MANAGEMENT_ROLES, Roles
from shared.security.auth import current_staff_context, require_roles
from shared.utils.exceptions import SessionBlockedError
from tableside.context import RequestContext, get_request_context
from tableside.repositories import Persistence, get_persistence, open_persistence
from tableside.services.domain import (
    CartStore,
    IsolatedSessionCheck,
    OrderLifecycleManager,
    SessionGuard,
    SessionLifecycleManager,
    TableRegistry,
)


def get_lifecycle(store: Persistence = Depends(get_persistence)) -> SessionLifecycleManager:
    return SessionLifecycleManager(store)


def get_registry(store: Persistence = Depends(get_persistence)) -> TableRegistry:
    return TableRegistry(store)


def get_store_opener() -> Callable[[], Persistence]:
    """Opens the short-lived persistence handles the session guard checks through."""
    return open_persistence


def get_guard(open_store: Callable[[], Persistence] = Depends(get_store_opener)) -> SessionGuard:
    return SessionGuard(IsolatedSessionCheck(open_store))


def get_order_manager(store: Persistence = Depends(get_persistence)) -> OrderLifecycleManager:
    return OrderLifecycleManager(store)


async def require_active_session(
    ctx: RequestContext = Depends(get_request_context),
    guard: SessionGuard = Depends(get_guard),
) -> RequestContext:
    """
    Guard dependency for customer cart/order endpoints.

    Raises:
        SessionBlockedError: 403 with the reason, message and recovery actions
    """
    decision = await guard.evaluate(ctx)
    if not decision.allowed:
        raise SessionBlockedError(
            reason=decision.reason,
            message=decision.message,
            recovery=[
                {"action": r.action, "label": r.label, "url": r.url}
                for r in decision.recovery
            ],
            table_id=ctx.table_id,
        )
    return ctx


def get_cart(
    ctx: RequestContext = Depends(require_active_session),
    store: Persistence = Depends(get_persistence),
) -> CartStore:
    return CartStore(store, ctx)


# =============================================================================
# Staff role dependencies
# =============================================================================


def any_staff(ctx: dict[str, Any] = Depends(current_staff_context)) -> dict[str, Any]:
    require_roles(ctx, Roles.ALL)
    return ctx


def floor_staff(ctx: dict[str, Any] = Depends(current_staff_context)) -> dict[str, Any]:
    """Staff who run the dining room: sessions, table status, order corrections."""
    require_roles(ctx, [*MANAGEMENT_ROLES, Roles.WAITER])
    return ctx


def management(ctx: dict[str, Any] = Depends(current_staff_context)) -> dict[str, Any]:
    """Catalog changes and bulk actions."""
    require_roles(ctx, list(MANAGEMENT_ROLES))
    return ctx
