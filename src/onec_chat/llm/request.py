"""Outbound request construction for OpenAI-compatible endpoints."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Sequence

from onec_chat.config import Profile, Provider
from onec_chat.errors import HeaderEncodingError
from onec_chat.types import ChatMessage, Role

SYSTEM_PROMPT = """Ты - AI-ассистент для разработки на платформе 1С:Предприятие.

Твои возможности:
- Анализ и рефакторинг кода на языке BSL (1С)
- Объяснение логики кода
- Поиск ошибок и предложение исправлений
- Написание нового кода по описанию
- Форматирование и улучшение читаемости кода

Используй русский язык в ответах. Форматируй код в блоках ```bsl...```."""

APP_REFERER = "https://mini-ai-1c.local"
APP_TITLE = "Mini AI 1C Agent"

# Extra identification headers sent per provider
PROVIDER_HEADERS: dict[Provider, dict[str, str]] = {
    Provider.OPENROUTER: {
        "HTTP-Referer": APP_REFERER,
        "X-Title": APP_TITLE,
    },
}


@dataclass(frozen=True)
class ChatRequest:
    url: str
    headers: dict[str, str]
    body: bytes


def _check_header_value(name: str, value: str) -> None:
    """Reject values an HTTP/1.1 header line cannot carry (RFC 9110 field-value)."""
    for ch in value:
        if ch == "\t" or " " <= ch <= "~":
            continue
        raise HeaderEncodingError(name, f"contains invalid character {ch!r}")


def build_headers(profile: Profile) -> dict[str, str]:
    """Header set shared by chat and model-listing requests."""
    headers = {"Content-Type": "application/json"}

    api_key = profile.resolved_api_key()
    if api_key:
        value = f"Bearer {api_key}"
        _check_header_value("Authorization", value)
        headers["Authorization"] = value

    headers.update(PROVIDER_HEADERS.get(profile.provider, {}))
    return headers


def build_messages(messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
    """Prepend the fixed system instruction to the caller's messages."""
    out = [ChatMessage(Role.SYSTEM, SYSTEM_PROMPT).to_dict()]
    out.extend(m.to_dict() for m in messages)
    return out


def build_chat_request(
    messages: Sequence[ChatMessage],
    profile: Profile,
) -> ChatRequest:
    """Assemble URL, headers and JSON body for a streaming completion."""
    payload: dict[str, Any] = {
        "model": profile.model,
        "messages": build_messages(messages),
        "stream": True,
        "temperature": profile.temperature,
        "max_tokens": profile.max_tokens,
    }
    return ChatRequest(
        url=f"{profile.base_url}/chat/completions",
        headers=build_headers(profile),
        body=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
    )


def models_url(profile: Profile) -> str:
    """URL of the model listing endpoint for *profile*.

    An explicit ``models_url`` wins; otherwise a trailing
    ``/chat/completions`` is swapped for ``/models``, or ``/models`` is
    appended to the base URL.
    """
    if profile.models_url:
        return profile.models_url
    base_url = profile.base_url
    if base_url.endswith("/chat/completions"):
        return base_url.removesuffix("/chat/completions") + "/models"
    return base_url.rstrip("/") + "/models"
