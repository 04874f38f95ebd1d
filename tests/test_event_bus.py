"""Tests for the live notification EventBus."""

import pytest

from onec_chat.events.bus import EventBus
from onec_chat.types import ChatEvent, EventType


@pytest.fixture
def bus():
    return EventBus()


class TestSubscribeAndEmit:
    async def test_async_handler(self, bus: EventBus):
        received = []

        async def handler(event: ChatEvent):
            received.append(event)

        bus.subscribe(EventType.CHAT_CHUNK, handler)
        ev = ChatEvent(type=EventType.CHAT_CHUNK, data="Hi")
        await bus.emit(ev)

        assert received == [ev]

    async def test_sync_handler(self, bus: EventBus):
        received = []

        bus.subscribe(EventType.CHAT_DONE, received.append)
        await bus.emit(ChatEvent(type=EventType.CHAT_DONE))

        assert len(received) == 1

    async def test_other_types_not_delivered(self, bus: EventBus):
        received = []

        bus.subscribe(EventType.CHAT_CHUNK, received.append)
        await bus.emit(ChatEvent(type=EventType.CHAT_ERROR, data="boom"))

        assert received == []

    async def test_wildcard_sees_every_type(self, bus: EventBus):
        seen = []

        bus.subscribe(EventType.CHAT_CHUNK, lambda e: seen.append("chunk-only"))
        bus.subscribe("*", lambda e: seen.append(e.type.value))
        await bus.emit(ChatEvent(type=EventType.CHAT_CHUNK, data="x"))
        await bus.emit(ChatEvent(type=EventType.CHAT_DONE, data="x"))

        assert sorted(seen) == ["chat-chunk", "chat-done", "chunk-only"]

    async def test_subscribe_by_name(self, bus: EventBus):
        received = []

        bus.subscribe("chat-error", received.append)
        await bus.emit(ChatEvent(type=EventType.CHAT_ERROR, data="x"))

        assert len(received) == 1


class TestFragmentSink:
    async def test_sink_publishes_chunks_in_order(self, bus: EventBus):
        received = []
        bus.subscribe(EventType.CHAT_CHUNK, lambda e: received.append(e.data))

        sink = bus.fragment_sink()
        await sink("Hello")
        await sink("")
        await sink(" world")

        assert received == ["Hello", "", " world"]

    async def test_failing_handler_is_isolated(self, bus: EventBus):
        received = []

        def broken(event: ChatEvent):
            raise ValueError("boom")

        bus.subscribe(EventType.CHAT_CHUNK, broken)
        bus.subscribe(EventType.CHAT_CHUNK, received.append)

        await bus.fragment_sink()("x")
        assert len(received) == 1
