"""
Core Event Publishing with Retry.
"""

from __future__ import annotations

import asyncio
import random

import redis.asyncio as redis

from shared.config.settings import settings
from shared.config.logging import get_logger
from .event_schema import Event

logger = get_logger(__name__)

# Events only carry identifiers, so anything bigger is a bug
MAX_EVENT_SIZE = 8 * 1024


def calculate_retry_delay(attempt: int, base_delay: float) -> float:
    """Exponential backoff with jitter: base * 2^attempt * [0.5, 1.5)."""
    return base_delay * (2 ** attempt) * (0.5 + random.random())


async def publish_event(
    redis_client: redis.Redis,
    channel: str,
    event: Event,
) -> int:
    """
    Publish an event to a Redis channel.

    Returns:
        Number of subscribers that received the message.

    Raises:
        ValueError: If the event is too large.
        Exception: The last Redis error once all retries are exhausted.
    """
    event_json = event.to_json()

    size = len(event_json.encode("utf-8"))
    if size > MAX_EVENT_SIZE:
        raise ValueError(
            f"Event {event.type} exceeds max size: {size} > {MAX_EVENT_SIZE} bytes"
        )

    last_error: Exception | None = None
    for attempt in range(settings.redis_publish_max_retries):
        try:
            return await redis_client.publish(channel, event_json)
        except Exception as e:
            last_error = e
            if attempt < settings.redis_publish_max_retries - 1:
                delay = calculate_retry_delay(attempt, settings.redis_publish_retry_delay)
                logger.warning(
                    "Redis publish failed, retrying",
                    channel=channel,
                    event_type=event.type,
                    attempt=attempt + 1,
                    delay_seconds=round(delay, 2),
                    error=str(e),
                )
                await asyncio.sleep(delay)

    logger.error(
        "Redis publish failed after all retries",
        channel=channel,
        event_type=event.type,
        error=str(last_error),
    )
    raise last_error  # type: ignore[misc]
