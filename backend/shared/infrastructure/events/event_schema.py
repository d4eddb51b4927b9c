"""
Event Schema.

Defines the Event dataclass for change notifications.

Events carry identifiers only. A consumer reacts to any event by re-fetching
the affected cart/order/session state, so duplicated or reordered deliveries
are harmless.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Any

from shared.config.constants import EventType


@dataclass
class Event:
    """
    Change notification for a table.

    'entity' holds event-specific identifiers (order_id, cart session_id, ...).
    """

    type: str
    table_id: str
    session_code: str | None = None
    entity: dict[str, Any] = field(default_factory=dict)
    ts: str | None = None
    v: int = 1

    def __post_init__(self) -> None:
        if self.type not in EventType.ALL:
            raise ValueError(f"Unknown event type: {self.type!r}")

        if not self.table_id or not isinstance(self.table_id, str):
            raise ValueError("Event table_id must be a non-empty string")

        if self.entity is not None and not isinstance(self.entity, dict):
            raise ValueError("Event entity must be a dict or None")

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        data = asdict(self)
        data["entity"] = data["entity"] or {}
        data["ts"] = data["ts"] or datetime.now(timezone.utc).isoformat()
        return json.dumps(data, ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        """Deserialize event from JSON string."""
        data = json.loads(json_str)
        return cls(**data)
