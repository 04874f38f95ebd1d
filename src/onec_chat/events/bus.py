"""Async pub/sub EventBus carrying live chat output to the UI."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

from onec_chat.types import ChatEvent, EventType

_logger = logging.getLogger(__name__)

# Subscribing under this key receives every event type
_WILDCARD = "*"

Handler = Callable[[ChatEvent], Any]


class EventBus:
    """Fan chat events out to UI handlers.

    Handlers subscribe to one event type or to ``"*"``, and may be sync or
    async.  A handler that raises is logged; the emitter never sees it.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def subscribe(self, event_type: EventType | str, handler: Handler) -> None:
        key = event_type.value if isinstance(event_type, EventType) else str(event_type)
        self._handlers.setdefault(key, []).append(handler)

    async def emit(self, event: ChatEvent) -> None:
        handlers = [
            *self._handlers.get(event.type.value, ()),
            *self._handlers.get(_WILDCARD, ()),
        ]
        if handlers:
            await asyncio.gather(*(self._deliver(h, event) for h in handlers))

    def fragment_sink(self) -> Callable[[str], Any]:
        """Return a fragment sink that publishes each fragment as ``chat-chunk``."""

        async def sink(fragment: str) -> None:
            await self.emit(ChatEvent(type=EventType.CHAT_CHUNK, data=fragment))

        return sink

    @staticmethod
    async def _deliver(handler: Handler, event: ChatEvent) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            _logger.exception("Handler %r failed on %s", handler, event.type.value)
