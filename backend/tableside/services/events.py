"""
Change notification publishing for the tableside service.

Notifications are best effort: they are scheduled as background tasks after
the write succeeded, and a Redis failure is logged and never surfaces to the
caller. Clients keep polling regardless.
"""

from __future__ import annotations

from typing import Any

from fastapi import BackgroundTasks

from shared.config.settings import settings
from shared.config.logging import get_logger, mask_session_code
from shared.infrastructure.events import (
    Event,
    channel_staff,
    channel_table,
    get_redis_pool,
    publish_event,
)

logger = get_logger(__name__)


async def _publish(event: Event) -> None:
    try:
        redis_client = await get_redis_pool()
        await publish_event(redis_client, channel_table(event.table_id), event)
        await publish_event(redis_client, channel_staff(), event)
    except Exception as e:
        logger.warning(
            "Change notification dropped",
            event_type=event.type,
            table_id=event.table_id,
            error=str(e),
        )


def notify(
    background_tasks: BackgroundTasks | None,
    event_type: str,
    table_id: str,
    session_code: str | None = None,
    **entity: Any,
) -> None:
    """Schedule a re-fetch hint for everyone watching this table."""
    if not settings.events_enabled or background_tasks is None:
        return
    # Subscribers only need to know which visit changed, not its capability
    masked = mask_session_code(session_code) if session_code else None
    event = Event(type=event_type, table_id=table_id, session_code=masked, entity=entity)
    logger.debug(
        "Scheduling change notification",
        event_type=event_type,
        table_id=table_id,
        session_code=masked,
    )
    background_tasks.add_task(_publish, event)
