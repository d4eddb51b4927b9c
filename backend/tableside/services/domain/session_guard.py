"""
Session Guard.

Gatekeeper for every customer-facing cart/order operation:

    LOADING -> ALLOWED   session code exists and is active for this table
    LOADING -> BLOCKED   no code, ended code, timeout or backend unreachable

Clients re-evaluate on a fixed poll interval. Polling is the only way an
ended session stops a customer; a request that already passed the guard is
never aborted.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import asdict, dataclass, field
from typing import Any

from fastapi.concurrency import run_in_threadpool

from shared.config.constants import BlockReason, GuardState
from shared.config.logging import get_logger, mask_session_code
from shared.config.settings import settings
from tableside.context import RequestContext
from tableside.repositories import Persistence, open_persistence

from .session_lifecycle import SessionLifecycleManager

logger = get_logger(__name__)

BLOCK_MESSAGES: dict[str, str] = {
    BlockReason.NO_SESSION: (
        "This link has no table session. Scan the QR code on your table to start ordering."
    ),
    BlockReason.SESSION_ENDED: (
        "This table session has ended. Scan the QR code again or ask the staff for a new one."
    ),
}


class IsolatedSessionCheck:
    """
    check_active over a persistence handle that is opened and closed inside
    the thread running the check.

    A check that times out keeps running in its worker thread after the guard
    has answered. It must never share the request's SQLAlchemy Session, which
    is closed from the request side once the response is sent.
    """

    def __init__(self, open_store: Callable[[], Persistence] = open_persistence):
        self._open_store = open_store

    def check_active(self, session_code: str | None, table_id: str | None = None) -> bool:
        store = self._open_store()
        try:
            return SessionLifecycleManager(store).check_active(session_code, table_id)
        finally:
            store.close()


@dataclass(frozen=True)
class RecoveryAction:
    action: str
    label: str
    url: str | None = None


@dataclass(frozen=True)
class GuardDecision:
    state: str
    table_id: str | None = None
    reason: str | None = None
    message: str | None = None
    recovery: tuple[RecoveryAction, ...] = field(default_factory=tuple)
    recheck_after_seconds: int | None = None

    @property
    def allowed(self) -> bool:
        return self.state == GuardState.ALLOWED

    @property
    def blocked(self) -> bool:
        return self.state == GuardState.BLOCKED

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SessionGuard:
    """Validates a RequestContext against the session store."""

    def __init__(
        self,
        lifecycle: SessionLifecycleManager | IsolatedSessionCheck,
        timeout_seconds: float | None = None,
        poll_interval_seconds: int | None = None,
        home_url: str | None = None,
    ):
        self._lifecycle = lifecycle
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.session_check_timeout_seconds
        self._poll_interval = poll_interval_seconds or settings.session_poll_interval_seconds
        self._home_url = home_url or f"{settings.public_base_url.rstrip('/')}/"

    @property
    def poll_interval_seconds(self) -> int:
        return self._poll_interval

    def loading(self, ctx: RequestContext) -> GuardDecision:
        return GuardDecision(state=GuardState.LOADING, table_id=ctx.table_id)

    def _recovery(self) -> tuple[RecoveryAction, ...]:
        return (
            RecoveryAction(action="rescan", label="Scan the table QR code again"),
            RecoveryAction(action="home", label="Go to the home page", url=self._home_url),
        )

    def _blocked(self, ctx: RequestContext, reason: str) -> GuardDecision:
        logger.info(
            "Session blocked",
            table_id=ctx.table_id,
            session_code=mask_session_code(ctx.session_code),
            reason=reason,
        )
        return GuardDecision(
            state=GuardState.BLOCKED,
            table_id=ctx.table_id,
            reason=reason,
            message=BLOCK_MESSAGES[reason],
            recovery=self._recovery(),
        )

    async def evaluate(self, ctx: RequestContext) -> GuardDecision:
        """Run one check. Never raises: every failure is a BLOCKED decision."""
        if not ctx.has_session:
            return self._blocked(ctx, BlockReason.NO_SESSION)

        try:
            active = await asyncio.wait_for(
                run_in_threadpool(self._lifecycle.check_active, ctx.session_code, ctx.table_id),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Session check timed out",
                table_id=ctx.table_id,
                session_code=mask_session_code(ctx.session_code),
                timeout_seconds=self._timeout,
            )
            active = False
        except Exception as e:
            logger.error(
                "Session check failed",
                table_id=ctx.table_id,
                session_code=mask_session_code(ctx.session_code),
                error=str(e),
            )
            active = False

        if not active:
            return self._blocked(ctx, BlockReason.SESSION_ENDED)

        return GuardDecision(
            state=GuardState.ALLOWED,
            table_id=ctx.table_id,
            recheck_after_seconds=self._poll_interval,
        )

    async def watch(
        self,
        ctx: RequestContext,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> AsyncIterator[GuardDecision]:
        """
        Yield LOADING, then every state change; stop after the first BLOCKED.

        Closing the iterator stops polling.
        """
        current = self.loading(ctx)
        yield current
        while True:
            decision = await self.evaluate(ctx)
            if decision.state != current.state:
                current = decision
                yield decision
            if decision.blocked:
                return
            await sleep(self._poll_interval)
