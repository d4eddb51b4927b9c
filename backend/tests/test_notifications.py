"""
Tests for change notifications and QR rendering.
"""

import base64
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import BackgroundTasks

from shared.config.constants import EventType
from shared.config.settings import settings
from shared.infrastructure.events import (
    MAX_EVENT_SIZE,
    Event,
    channel_staff,
    channel_table,
    publish_event,
)
from tableside.services import events
from tableside.services.qr import QrRenderer


class TestEventSchema:
    def test_round_trip(self):
        event = Event(type=EventType.ORDER_CHANGED, table_id="4", entity={"order_id": 7})

        restored = Event.from_json(event.to_json())

        assert restored.type == EventType.ORDER_CHANGED
        assert restored.table_id == "4"
        assert restored.entity == {"order_id": 7}
        assert restored.ts is not None

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            Event(type="ROUND_SUBMITTED", table_id="1")

    def test_empty_table(self):
        with pytest.raises(ValueError):
            Event(type=EventType.CART_CHANGED, table_id="")


class TestChannels:
    def test_names(self):
        assert channel_table("T-01") == "tableside:table:T-01"
        assert channel_staff() == "tableside:staff"

    def test_table_required(self):
        with pytest.raises(ValueError):
            channel_table("")


class TestPublishEvent:
    @pytest.mark.asyncio
    async def test_publishes_json(self):
        redis_client = AsyncMock()
        redis_client.publish.return_value = 2
        event = Event(type=EventType.SESSION_ENDED, table_id="1")

        delivered = await publish_event(redis_client, channel_table("1"), event)

        assert delivered == 2
        channel, payload = redis_client.publish.call_args.args
        assert channel == "tableside:table:1"
        assert json.loads(payload)["type"] == EventType.SESSION_ENDED

    @pytest.mark.asyncio
    async def test_retries_then_raises(self, monkeypatch):
        monkeypatch.setattr(settings, "redis_publish_retry_delay", 0)
        redis_client = AsyncMock()
        redis_client.publish.side_effect = ConnectionError("redis down")

        with pytest.raises(ConnectionError):
            await publish_event(redis_client, channel_staff(), Event(type=EventType.TABLE_CHANGED, table_id="1"))

        assert redis_client.publish.call_count == settings.redis_publish_max_retries

    @pytest.mark.asyncio
    async def test_oversized_event_rejected(self):
        event = Event(type=EventType.TABLE_CHANGED, table_id="1", entity={"blob": "x" * MAX_EVENT_SIZE})
        with pytest.raises(ValueError):
            await publish_event(AsyncMock(), channel_staff(), event)


class TestNotify:
    def test_disabled_schedules_nothing(self, monkeypatch):
        monkeypatch.setattr(settings, "events_enabled", False)
        tasks = BackgroundTasks()

        events.notify(tasks, EventType.CART_CHANGED, "1", "1-100-abcdefghij")

        assert tasks.tasks == []

    def test_masks_session_code(self, monkeypatch):
        monkeypatch.setattr(settings, "events_enabled", True)
        tasks = BackgroundTasks()

        events.notify(tasks, EventType.CART_CHANGED, "1", "1-100-abcdefghij", lines=2)

        assert len(tasks.tasks) == 1
        event = tasks.tasks[0].args[0]
        assert event.session_code == "***cdefghij"
        assert "1-100" not in event.session_code
        assert event.entity == {"lines": 2}

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self, monkeypatch):
        async def broken_pool():
            raise ConnectionError("redis down")

        monkeypatch.setattr(events, "get_redis_pool", broken_pool)

        await events._publish(Event(type=EventType.ORDER_CHANGED, table_id="1"))


class TestQrRenderer:
    def test_png_bytes(self):
        png = QrRenderer().render_png("http://testserver/term/T-01")
        assert png.startswith(b"\x89PNG")

    def test_data_url(self):
        url = QrRenderer(box_size=4, border=1).render_data_url("http://testserver/menu?table=1")

        prefix = "data:image/png;base64,"
        assert url.startswith(prefix)
        assert base64.b64decode(url[len(prefix):]).startswith(b"\x89PNG")

    def test_empty_payload(self):
        with pytest.raises(ValueError):
            QrRenderer().render_png("")

    def test_box_size_clamped(self):
        assert QrRenderer(box_size=500).box_size == 20
