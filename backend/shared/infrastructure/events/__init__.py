"""
Change notifications via Redis pub/sub.

This package provides:
- Event schema and validation (event_schema.py)
- Channel naming conventions (channels.py)
- Redis connection pool management (redis_pool.py)
- Event publishing with retry (publisher.py)

Notifications are an optimisation over polling. Every event is a re-fetch
hint; nothing downstream applies an event as a delta.
"""

from .event_schema import Event
from .channels import channel_table, channel_staff
from .redis_pool import get_redis_pool, close_redis_pool, check_redis_health
from .publisher import publish_event, calculate_retry_delay, MAX_EVENT_SIZE

__all__ = [
    "Event",
    "channel_table",
    "channel_staff",
    "get_redis_pool",
    "close_redis_pool",
    "check_redis_health",
    "publish_event",
    "calculate_retry_delay",
    "MAX_EVENT_SIZE",
]
