"""Tests for request and header construction."""

from __future__ import annotations

import json

import pytest

from onec_chat.config import Profile
from onec_chat.errors import HeaderEncodingError
from onec_chat.llm.request import (
    SYSTEM_PROMPT,
    build_chat_request,
    build_headers,
    models_url,
)
from onec_chat.types import ChatMessage


class TestBuildHeaders:
    def test_with_key(self):
        headers = build_headers(Profile(api_key="sk-1"))
        assert headers == {
            "Content-Type": "application/json",
            "Authorization": "Bearer sk-1",
        }

    def test_empty_key_means_no_auth(self):
        headers = build_headers(Profile(provider="ollama"))
        assert headers == {"Content-Type": "application/json"}

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("ONEC_TEST_KEY", "sk-env")
        headers = build_headers(Profile(api_key_env="ONEC_TEST_KEY"))
        assert headers["Authorization"] == "Bearer sk-env"

    def test_openrouter_identification(self):
        headers = build_headers(Profile(provider="openrouter", api_key="k"))
        assert headers["HTTP-Referer"] == "https://mini-ai-1c.local"
        assert headers["X-Title"] == "Mini AI 1C Agent"

    def test_other_providers_have_no_extra_headers(self):
        headers = build_headers(Profile(provider="openai", api_key="k"))
        assert "X-Title" not in headers

    @pytest.mark.parametrize("key", ["sk\r\nX-Evil: 1", "ключ", "sk\x00"])
    def test_invalid_key_characters(self, key: str):
        with pytest.raises(HeaderEncodingError) as excinfo:
            build_headers(Profile(api_key=key))
        assert excinfo.value.header == "Authorization"


class TestBuildChatRequest:
    def test_url_is_not_normalised(self):
        request = build_chat_request([], Profile(base_url="http://h/v1/"))
        assert request.url == "http://h/v1//chat/completions"

    def test_body(self):
        profile = Profile(model="m", temperature=0.5, max_tokens=10)
        request = build_chat_request([ChatMessage.user("Привет")], profile)
        body = json.loads(request.body)
        assert body == {
            "model": "m",
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": "Привет"},
            ],
            "stream": True,
            "temperature": 0.5,
            "max_tokens": 10,
        }

    def test_message_accepts_plain_role_string(self):
        request = build_chat_request([ChatMessage("assistant", "ok")], Profile())
        assert json.loads(request.body)["messages"][1]["role"] == "assistant"


class TestModelsUrl:
    @pytest.mark.parametrize("base_url, expected", [
        ("https://api.test/v1", "https://api.test/v1/models"),
        ("https://api.test/v1/", "https://api.test/v1/models"),
        ("https://api.test/v1/chat/completions", "https://api.test/v1/models"),
    ])
    def test_derived(self, base_url: str, expected: str):
        assert models_url(Profile(base_url=base_url)) == expected

    def test_explicit_override(self):
        profile = Profile(base_url="https://api.test/v1?x=1", models_url="https://api.test/list")
        assert models_url(profile) == "https://api.test/list"
