"""
Customer session router.

Customer pages call GET /api/customer/session on load and then every
recheck_after_seconds; a BLOCKED answer replaces the page with the message
and recovery actions.
"""

from fastapi import APIRouter, Depends

from shared.config.logging import session_logger as logger, mask_session_code
from shared.utils.schemas import GuardDecisionOutput, HeartbeatResponse
from tableside.context import RequestContext, get_request_context
from tableside.routers._common import get_guard, get_lifecycle, translate_domain_errors
from tableside.services.domain import SessionGuard, SessionLifecycleManager

router = APIRouter(prefix="/api/customer/session", tags=["customer-session"])


@router.get("", response_model=GuardDecisionOutput)
async def get_session_state(
    ctx: RequestContext = Depends(get_request_context),
    guard: SessionGuard = Depends(get_guard),
):
    """Guard decision for ?table=&session=. Always 200; the state says whether access is allowed."""
    decision = await guard.evaluate(ctx)
    return GuardDecisionOutput.model_validate(decision)


@router.post("/heartbeat", response_model=HeartbeatResponse)
def heartbeat(
    ctx: RequestContext = Depends(get_request_context),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
):
    """Record that the visit is still open. Inactive or unknown sessions answer active=false."""
    if not ctx.has_session:
        return HeartbeatResponse(active=False)
    with translate_domain_errors("heartbeat"):
        active = lifecycle.touch_session(ctx.session_code, table_id=ctx.table_id)
    if not active:
        logger.debug("Heartbeat for inactive session", session_code=mask_session_code(ctx.session_code))
    return HeartbeatResponse(active=active)
