"""
Terminal entry router.

The QR printed on a terminal encodes the static /term/{table_id} URL. Each
visit submits name and phone and receives a freshly minted session, so the
previous visitor's cart is never reachable.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from shared.config.constants import EventType, TableType
from shared.config.settings import settings
from shared.security.rate_limit import limiter
from shared.utils.exceptions import TableNotFoundError
from shared.utils.schemas import TerminalEntryPage, TerminalEntryRequest, TerminalEntryResponse
from tableside.routers._common import get_lifecycle, get_registry, translate_domain_errors
from tableside.services.domain import SessionLifecycleManager, TableRegistry
from tableside.services.events import notify

router = APIRouter(tags=["terminal-entry"])


@router.get("/term/{table_id}", response_model=TerminalEntryPage)
def terminal_entry_page(
    table_id: str,
    registry: TableRegistry = Depends(get_registry),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
):
    """Describe the entry form behind a terminal QR."""
    with translate_domain_errors("open terminal"):
        view = registry.get(table_id)
    if view.type != TableType.TERMINAL:
        raise TableNotFoundError(table_id)
    return TerminalEntryPage(
        table_id=view.table_id,
        name=view.name,
        entry_url=lifecycle.terminal_url(table_id),
        enter_endpoint=f"/api/term/{table_id}/enter",
    )


@router.post(
    "/api/term/{table_id}/enter",
    response_model=TerminalEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.terminal_entry_rate_limit)
def enter_terminal(
    request: Request,
    table_id: str,
    body: TerminalEntryRequest,
    background_tasks: BackgroundTasks,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
):
    """Start a terminal visit. Invalid name/phone answer 400 naming the field."""
    with translate_domain_errors("terminal entry"):
        entry = lifecycle.enter_terminal(table_id, body.name, body.phone)
    notify(background_tasks, EventType.SESSION_STARTED, table_id, entry.session_code)
    return TerminalEntryResponse(
        table_id=entry.table_id,
        session_code=entry.session_code,
        menu_url=entry.menu_url,
        customer_name=entry.customer_name,
    )
