"""Tests for the click command line front end."""

from __future__ import annotations

import pytest
import yaml
from click.testing import CliRunner

import onec_chat.cli as cli
from onec_chat.errors import ApiError, ConnectionCheckError


class FakeClient:
    answer = ["Вот код:\n```bsl\n", "Сообщить(1);", "\n```"]
    error: Exception | None = None

    def __init__(self, resolver, **kwargs):
        self.profile = resolver.active_profile()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def stream_chat_completion(self, messages, on_fragment=None):
        if self.error is not None:
            raise self.error
        for piece in self.answer:
            await on_fragment(piece)
        return "".join(self.answer)

    async def fetch_models(self):
        return ["gpt-a", "gpt-b"]

    async def test_connection(self):
        if self.error is not None:
            raise ConnectionCheckError(self.error)
        return "Success! Found 2 models."


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "onec_chat.yaml"
    path.write_text(yaml.safe_dump({
        "active": "main",
        "profiles": {"main": {"provider": "openai", "api_key": "sk", "model": "m"}},
    }))
    return str(path)


@pytest.fixture(autouse=True)
def fake_client(monkeypatch):
    FakeClient.error = None
    monkeypatch.setattr(cli, "ChatClient", FakeClient)
    return FakeClient


class TestChatCommand:
    def test_streams_answer(self, config_file):
        result = CliRunner().invoke(cli.main, ["-c", config_file, "chat", "Привет"])
        assert result.exit_code == 0, result.output
        assert "Сообщить(1);" in result.output

    def test_extract_blocks(self, config_file):
        result = CliRunner().invoke(cli.main, ["-c", config_file, "chat", "x", "--extract"])
        assert result.exit_code == 0, result.output
        assert "BSL block 1" in result.output

    def test_api_error_exits_nonzero(self, config_file, fake_client):
        fake_client.error = ApiError(401, "unauthorized")
        result = CliRunner().invoke(cli.main, ["-c", config_file, "chat", "x"])
        assert result.exit_code == 1
        assert "unauthorized" in result.output

    def test_unknown_profile(self, config_file):
        result = CliRunner().invoke(cli.main, ["-c", config_file, "chat", "x", "-p", "nope"])
        assert result.exit_code == 1


class TestOtherCommands:
    def test_models(self, config_file):
        result = CliRunner().invoke(cli.main, ["-c", config_file, "models"])
        assert result.exit_code == 0, result.output
        assert "gpt-a" in result.output
        assert "gpt-b" in result.output

    def test_check_success(self, config_file):
        result = CliRunner().invoke(cli.main, ["-c", config_file, "check"])
        assert result.exit_code == 0, result.output
        assert "Success! Found 2 models." in result.output

    def test_check_failure(self, config_file, fake_client):
        fake_client.error = ApiError(500)
        result = CliRunner().invoke(cli.main, ["-c", config_file, "check"])
        assert result.exit_code == 1

    def test_missing_config_file(self, tmp_path):
        result = CliRunner().invoke(cli.main, ["-c", str(tmp_path / "none.yaml"), "models"])
        assert result.exit_code == 1
