"""
Staff table and session router.

Table catalog and the session lifecycle: start/end a table's session,
delete tables, end every terminal session at once. Destructive actions
answer 428 until repeated with ?confirm=true.
"""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from shared.config.constants import EventType, TableType
from shared.config.logging import staff_logger as logger
from shared.utils.schemas import (
    BulkEndResponse,
    SessionEndResponse,
    SessionStartResponse,
    TableCreate,
    TableDeleteResponse,
    TableOutput,
    TableStatusUpdate,
)
from tableside.routers._common import (
    any_staff,
    floor_staff,
    get_lifecycle,
    get_registry,
    management,
    translate_domain_errors,
)
from tableside.services.domain import SessionLifecycleManager, TableRegistry
from tableside.services.events import notify

router = APIRouter(prefix="/api/staff", tags=["staff-tables"])


# =============================================================================
# Tables
# =============================================================================


@router.get("/tables", response_model=list[TableOutput])
def list_tables(
    table_type: str | None = Query(default=None, alias="type", pattern="^(regular|terminal)$"),
    active_only: bool = False,
    registry: TableRegistry = Depends(get_registry),
    ctx: dict[str, Any] = Depends(any_staff),
):
    """All tables and terminals with session_active derived from live sessions."""
    with translate_domain_errors("list tables"):
        if table_type == TableType.TERMINAL:
            views = registry.terminals(active_only=active_only)
        else:
            views = registry.sync()
            if table_type:
                views = [v for v in views if v.type == table_type]
            if active_only:
                views = [v for v in views if v.session_active]
    return [TableOutput.model_validate(v) for v in views]


@router.get("/tables/{table_id}", response_model=TableOutput)
def get_table(
    table_id: str,
    registry: TableRegistry = Depends(get_registry),
    ctx: dict[str, Any] = Depends(any_staff),
):
    with translate_domain_errors("get table"):
        view = registry.get(table_id)
    return TableOutput.model_validate(view)


@router.post("/tables", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreate,
    background_tasks: BackgroundTasks,
    registry: TableRegistry = Depends(get_registry),
    ctx: dict[str, Any] = Depends(management),
):
    with translate_domain_errors("create table"):
        view = registry.create(body.table_id, body.name, body.type, body.seats)
    logger.info("Table registered", table_id=view.table_id, staff_id=ctx["sub"])
    notify(background_tasks, EventType.TABLE_CHANGED, view.table_id, action="created")
    return TableOutput.model_validate(view)


@router.delete("/tables/{table_id}", response_model=TableDeleteResponse)
def delete_table(
    table_id: str,
    background_tasks: BackgroundTasks,
    confirm: bool = False,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
    ctx: dict[str, Any] = Depends(management),
):
    """Deleting a terminal with a live session ends its sessions first (needs confirm)."""
    with translate_domain_errors("delete table"):
        ended = lifecycle.delete_table(table_id, confirmed=confirm)
    logger.info("Table removed", table_id=table_id, staff_id=ctx["sub"], sessions_ended=ended)
    if ended:
        notify(background_tasks, EventType.SESSION_ENDED, table_id)
    notify(background_tasks, EventType.TABLE_CHANGED, table_id, action="deleted")
    return TableDeleteResponse(table_id=table_id, sessions_ended=ended)


@router.patch("/tables/{table_id}/status", response_model=TableOutput)
def update_table_status(
    table_id: str,
    body: TableStatusUpdate,
    background_tasks: BackgroundTasks,
    registry: TableRegistry = Depends(get_registry),
    ctx: dict[str, Any] = Depends(floor_staff),
):
    with translate_domain_errors("update table status"):
        view = registry.set_status(table_id, body.status)
    notify(background_tasks, EventType.TABLE_CHANGED, table_id, status=body.status)
    return TableOutput.model_validate(view)


# =============================================================================
# Sessions
# =============================================================================


@router.post(
    "/tables/{table_id}/session",
    response_model=SessionStartResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_session(
    table_id: str,
    background_tasks: BackgroundTasks,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
    ctx: dict[str, Any] = Depends(floor_staff),
):
    """
    Start a session and return its QR.

    Regular tables: a fresh code replacing any active one.
    Terminals: the static entry URL (session_code is null).
    """
    with translate_domain_errors("start session"):
        started = lifecycle.start_session(table_id)
    if started.session_code:
        logger.info("Session opened by staff", table_id=table_id, staff_id=ctx["sub"])
        notify(background_tasks, EventType.SESSION_STARTED, table_id, started.session_code)
    return SessionStartResponse(
        table_id=started.table_id,
        table_type=started.table_type,
        session_code=started.session_code,
        menu_url=started.menu_url,
        qr_image=started.qr_image,
    )


@router.delete("/tables/{table_id}/session", response_model=SessionEndResponse)
def end_session(
    table_id: str,
    background_tasks: BackgroundTasks,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
    ctx: dict[str, Any] = Depends(floor_staff),
):
    """End a table's session. Idempotent; terminals end every historical session."""
    with translate_domain_errors("end session"):
        ended = lifecycle.end_session(table_id)
    logger.info("Session closed by staff", table_id=table_id, staff_id=ctx["sub"], sessions_ended=ended)
    if ended:
        notify(background_tasks, EventType.SESSION_ENDED, table_id)
    return SessionEndResponse(table_id=table_id, sessions_ended=ended)


@router.post("/terminals/end-all", response_model=BulkEndResponse)
def end_all_terminal_sessions(
    background_tasks: BackgroundTasks,
    confirm: bool = False,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
    ctx: dict[str, Any] = Depends(management),
):
    with translate_domain_errors("end all terminal sessions"):
        ended = lifecycle.bulk_end_all_terminal_sessions(confirmed=confirm)
    for table_id in ended:
        notify(background_tasks, EventType.SESSION_ENDED, table_id)
    logger.info("Bulk terminal end", staff_id=ctx["sub"], count=len(ended))
    return BulkEndResponse(count=len(ended), table_ids=ended)
