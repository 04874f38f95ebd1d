"""Shared data types for onec_chat."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Chat types
# ---------------------------------------------------------------------------

class Role(str, enum.Enum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """A single message in the outbound conversation."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        # Accept plain strings ("user") as well as Role members
        object.__setattr__(self, "role", Role(self.role))

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> ChatMessage:
        return cls(Role.ASSISTANT, content)

    @classmethod
    def system(cls, content: str) -> ChatMessage:
        return cls(Role.SYSTEM, content)


@dataclass
class StreamStats:
    """Counters collected while folding one SSE stream."""

    events: int = 0
    fragments: int = 0
    skipped: int = 0
    done: bool = False
    latency_ms: float = 0


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

class EventType(enum.Enum):
    """Events published on the live notification channel."""

    CHAT_CHUNK = "chat-chunk"
    CHAT_DONE = "chat-done"
    CHAT_ERROR = "chat-error"


@dataclass
class ChatEvent:
    """Event delivered to UI subscribers via the EventBus."""

    type: EventType
    data: Any = None
    timestamp: float = field(default_factory=time.time)
