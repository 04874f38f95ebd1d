"""Exception hierarchy for the chat client.

Transport exceptions from httpx are translated at the client seam so callers
only ever need to catch ``ChatClientError``.
"""

from __future__ import annotations


class ChatClientError(Exception):
    """Base class for every failure surfaced by onec_chat."""


class ConfigError(ChatClientError, ValueError):
    """Configuration file or profile is invalid."""


class ProfileMissingError(ChatClientError):
    """No active LLM profile is configured."""

    def __init__(self, message: str = "No active LLM profile") -> None:
        super().__init__(message)


class HeaderEncodingError(ChatClientError):
    """A header value (usually the API key) cannot be sent over HTTP."""

    def __init__(self, header: str, reason: str) -> None:
        super().__init__(f"Invalid value for header {header!r}: {reason}")
        self.header = header
        self.reason = reason


class RequestFailure(ChatClientError):
    """The request never produced a response (DNS, connect, TLS...)."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Request failed: {message}")


class ApiError(ChatClientError):
    """The provider answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        text = f"API error {status_code}"
        if body:
            text += f": {body}"
        super().__init__(text)
        self.status_code = status_code
        self.body = body


class StreamError(ChatClientError):
    """Reading the response stream failed after it had started.

    ``partial_text`` holds whatever was accumulated before the failure.
    """

    def __init__(self, message: str, partial_text: str = "") -> None:
        super().__init__(f"Stream error: {message}")
        self.partial_text = partial_text


class ResponseFormatError(ChatClientError):
    """A 2xx response body could not be interpreted."""


class ConnectionCheckError(ChatClientError):
    """Connection probe failed; wraps the underlying error."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Connection failed: {cause}")
        self.cause = cause
