"""Async streaming client for OpenAI-compatible chat APIs.

Uses ``httpx.AsyncClient``.  One call performs exactly one request: there
are no retries and no reconnects.  The active profile comes from the
``ProfileResolver`` handed to the client, or is passed per call.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Sequence

import httpx

from onec_chat.config import Profile, ProfileResolver
from onec_chat.errors import (
    ApiError,
    ChatClientError,
    ConnectionCheckError,
    ProfileMissingError,
    RequestFailure,
    ResponseFormatError,
    StreamError,
)
from onec_chat.types import ChatMessage, StreamStats

from .request import build_chat_request, build_headers, models_url
from .sse import DeltaAccumulator, SSEReassembler

_logger = logging.getLogger(__name__)

# Receives each content fragment; may be sync or async
FragmentSink = Callable[[str], Any]


async def _read_error_body(response: httpx.Response) -> str:
    """Best-effort read of an error response body."""
    try:
        return (await response.aread()).decode("utf-8", errors="replace")
    except httpx.HTTPError:
        return ""


class ChatClient:
    """Streaming chat, model listing and connection checks for one app."""

    def __init__(
        self,
        resolver: ProfileResolver,
        *,
        http_client: httpx.AsyncClient | None = None,
        sink_timeout: float | None = None,
    ) -> None:
        self._resolver = resolver
        self._owns_client = http_client is None
        # No timeout by default: callers impose one if they need it
        self._client = http_client or httpx.AsyncClient(timeout=None)
        self._sink_timeout = sink_timeout
        self._last_stats: StreamStats | None = None

    # ------------------------------------------------------------------
    # Streaming chat
    # ------------------------------------------------------------------

    async def stream_chat_completion(
        self,
        messages: Sequence[ChatMessage],
        on_fragment: FragmentSink | None = None,
        *,
        profile: Profile | None = None,
    ) -> str:
        """Stream a chat completion and return the full assistant text.

        Every content fragment is passed to *on_fragment* as it arrives.
        Ends on ``[DONE]`` or when the server closes the stream.
        """
        profile = self._resolve(profile)
        request = build_chat_request(messages, profile)
        _logger.info(
            "Chat request to %s (model=%s, %d messages)",
            request.url, profile.model, len(messages),
        )

        start = time.monotonic()
        try:
            http_request = self._client.build_request(
                "POST", request.url,
                headers=request.headers,
                content=request.body,
                timeout=self._timeout(profile),
            )
            response = await self._client.send(http_request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RequestFailure(str(e)) from e

        try:
            if not response.is_success:
                body = await _read_error_body(response)
                _logger.warning(
                    "Chat request failed with %d: %.200s",
                    response.status_code, body,
                )
                raise ApiError(response.status_code, body)
            return await self._consume(response, on_fragment, start)
        finally:
            await response.aclose()

    async def _consume(
        self,
        response: httpx.Response,
        on_fragment: FragmentSink | None,
        start: float,
    ) -> str:
        reassembler = SSEReassembler()
        accumulator = DeltaAccumulator()

        try:
            async for chunk in response.aiter_bytes():
                for event in reassembler.feed(chunk):
                    step = accumulator.apply(event)
                    for fragment in step.fragments:
                        await self._notify(on_fragment, fragment)
                    if step.done:
                        return self._finish(accumulator, start)
        except httpx.HTTPError as e:
            self._finish(accumulator, start)
            raise StreamError(str(e), partial_text=accumulator.text) from e

        rest = reassembler.finish()
        if rest.strip():
            _logger.debug("Discarding unterminated event at end of stream: %.200s", rest)
        return self._finish(accumulator, start)

    def _finish(self, accumulator: DeltaAccumulator, start: float) -> str:
        stats = accumulator.stats
        stats.latency_ms = (time.monotonic() - start) * 1000
        self._last_stats = stats
        if stats.skipped:
            _logger.warning(
                "Skipped %d of %d stream events with unrecognised payloads",
                stats.skipped, stats.events,
            )
        _logger.info(
            "Stream finished: %d fragments, done=%s, %.0f ms",
            stats.fragments, stats.done, stats.latency_ms,
        )
        return accumulator.text

    async def _notify(self, sink: FragmentSink | None, fragment: str) -> None:
        if sink is None:
            return
        try:
            result = sink(fragment)
            if inspect.isawaitable(result):
                await asyncio.wait_for(result, self._sink_timeout)
        except asyncio.TimeoutError:
            _logger.warning(
                "Fragment sink timed out after %ss, fragment dropped",
                self._sink_timeout,
            )
        except Exception:
            _logger.exception(
                "Fragment sink %s raised",
                getattr(sink, "__name__", sink),
            )

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    async def fetch_models(self, profile: Profile | None = None) -> list[str]:
        """Return the provider's model ids, sorted."""
        profile = self._resolve(profile)
        url = models_url(profile)
        headers = build_headers(profile)
        _logger.info("Fetching models from %s", url)

        try:
            response = await self._client.get(
                url, headers=headers, timeout=self._timeout(profile),
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RequestFailure(str(e)) from e

        if not response.is_success:
            raise ApiError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise ResponseFormatError(f"Model list is not valid JSON: {e}") from e

        models: list[str] = []
        items = data.get("data") if isinstance(data, dict) else None
        if isinstance(items, list):
            for item in items:
                if isinstance(item, dict) and isinstance(item.get("id"), str):
                    models.append(item["id"])
        models.sort()
        return models

    async def test_connection(self, profile: Profile | None = None) -> str:
        """Probe the provider by listing its models."""
        try:
            models = await self.fetch_models(profile)
        except ChatClientError as e:
            raise ConnectionCheckError(e) from e
        return f"Success! Found {len(models)} models."

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve(self, profile: Profile | None) -> Profile:
        if profile is not None:
            return profile
        profile = self._resolver.active_profile()
        if profile is None:
            raise ProfileMissingError()
        return profile

    @staticmethod
    def _timeout(profile: Profile) -> Any:
        if profile.timeout is None:
            return httpx.USE_CLIENT_DEFAULT
        return profile.timeout

    @property
    def last_stats(self) -> StreamStats | None:
        """Counters from the last ``stream_chat_completion()`` call."""
        return self._last_stats

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ChatClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
