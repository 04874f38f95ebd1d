"""onec_chat: streaming chat client for OpenAI-compatible APIs."""

from onec_chat.codeblocks import extract_code_blocks
from onec_chat.config import ChatConfig, Profile, ProfileResolver, Provider, StaticProfileResolver, load_config
from onec_chat.errors import (
    ApiError,
    ChatClientError,
    ConfigError,
    ConnectionCheckError,
    HeaderEncodingError,
    ProfileMissingError,
    RequestFailure,
    ResponseFormatError,
    StreamError,
)
from onec_chat.llm.client import ChatClient
from onec_chat.types import ChatMessage, Role, StreamStats

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "ChatClient",
    "ChatClientError",
    "ChatConfig",
    "ChatMessage",
    "ConfigError",
    "ConnectionCheckError",
    "HeaderEncodingError",
    "Profile",
    "ProfileMissingError",
    "ProfileResolver",
    "Provider",
    "RequestFailure",
    "ResponseFormatError",
    "Role",
    "StaticProfileResolver",
    "StreamError",
    "StreamStats",
    "extract_code_blocks",
    "load_config",
]
