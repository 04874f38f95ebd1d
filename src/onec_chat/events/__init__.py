"""Live notification channel for chat output."""

from onec_chat.events.bus import EventBus

__all__ = ["EventBus"]
