"""
Redis Channel Naming.
"""

from __future__ import annotations

CHANNEL_PREFIX = "tableside"


def channel_table(table_id: str) -> str:
    """Channel for every change that concerns one table (sessions, cart, orders)."""
    if not table_id or not isinstance(table_id, str):
        raise ValueError(f"table_id must be a non-empty string, got {table_id!r}")
    return f"{CHANNEL_PREFIX}:table:{table_id}"


def channel_staff() -> str:
    """Channel for the staff dashboard (all tables)."""
    return f"{CHANNEL_PREFIX}:staff"
