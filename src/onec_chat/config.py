"""Profile configuration for onec_chat.

Config discovery (first match wins):
  1. ``--config`` flag
  2. ``./onec_chat.yaml``
  3. ``~/.config/onec-chat/config.yaml``
  4. Built-in defaults (no profiles)
"""

from __future__ import annotations

import enum
import logging
import os
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from onec_chat.errors import ConfigError

_logger = logging.getLogger(__name__)


class Provider(str, enum.Enum):
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    OLLAMA = "ollama"
    CUSTOM = "custom"


_DEFAULT_BASE_URLS: dict[Provider, str] = {
    Provider.OPENAI: "https://api.openai.com/v1",
    Provider.OPENROUTER: "https://openrouter.ai/api/v1",
    Provider.OLLAMA: "http://localhost:11434/v1",
}


class Profile(BaseModel):
    """One LLM endpoint plus the generation parameters used with it.

    ``base_url`` may be omitted for known providers and is filled from the
    provider default.  An empty API key is a valid "no auth" setup.
    """

    model_config = ConfigDict(frozen=True)

    provider: Provider = Provider.OPENAI
    base_url: str = Field(default="", validate_default=True)
    api_key: str = ""
    api_key_env: str = ""  # name of an environment variable holding the key
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 4096
    models_url: str | None = None  # overrides the derived /models endpoint
    timeout: float | None = None  # seconds; None waits indefinitely

    @field_validator("base_url")
    @classmethod
    def _default_base_url(cls, value: str, info: ValidationInfo) -> str:
        value = value.strip()
        if value:
            return value
        default = _DEFAULT_BASE_URLS.get(info.data.get("provider"))
        if default is None:
            raise ValueError("base_url is required for custom providers")
        return default

    def resolved_api_key(self) -> str:
        """Return the literal key, else the env var value, else ``""``."""
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.environ.get(self.api_key_env, "")
        return ""


class ProfileResolver(Protocol):
    """Anything that can tell the client which profile is active."""

    def active_profile(self) -> Profile | None:
        ...


class StaticProfileResolver:
    """Resolver that always answers with one fixed profile."""

    def __init__(self, profile: Profile | None) -> None:
        self._profile = profile

    def active_profile(self) -> Profile | None:
        return self._profile


class ChatConfig(BaseModel):
    """Top-level config: named profiles and the one currently active."""

    active: str | None = None
    profiles: dict[str, Profile] = Field(default_factory=dict)
    sink_timeout: float | None = None  # max seconds one fragment may block

    def profile(self, name: str) -> Profile | None:
        return self.profiles.get(name)

    def active_profile(self) -> Profile | None:
        if self.active is not None:
            return self.profiles.get(self.active)
        # A single profile is active implicitly
        if len(self.profiles) == 1:
            return next(iter(self.profiles.values()))
        return None


CONFIG_FILENAME = "onec_chat.yaml"

_SEARCH_PATHS = [
    Path(CONFIG_FILENAME),
    Path.home() / ".config" / "onec-chat" / "config.yaml",
]


def load_config(
    config_path: str | Path | None = None,
) -> tuple[ChatConfig, Path | None]:
    """Load configuration from YAML.

    Returns (config, resolved_path).  *resolved_path* is ``None`` when no
    file was found and built-in defaults are used.
    """
    resolved: Path | None = None
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for candidate in _SEARCH_PATHS:
            if candidate.exists():
                resolved = candidate
                break

    if resolved is None:
        _logger.info("No config file found, using defaults")
        return ChatConfig(), None

    _logger.info("Loading config from %s", resolved)
    try:
        with open(resolved, encoding="utf-8") as f:
            raw: Any = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {resolved}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    try:
        config = ChatConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {resolved}:\n{e}") from e

    if config.active is not None and config.active not in config.profiles:
        raise ConfigError(f"Active profile '{config.active}' is not defined")
    return config, resolved.resolve()
