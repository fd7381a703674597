"""Settings tests — env prefix, defaults, production guard."""

import pytest
from pydantic import ValidationError

from chatqueue.config import Settings


def test_defaults():
    s = Settings()
    assert s.system_instructions == "You are a helpful assistant."
    assert s.tool_round_limit == 16
    assert s.drain_timeout_seconds is None


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("CHATQUEUE_MODEL", "deepseek-chat")
    monkeypatch.setenv("CHATQUEUE_OPENAI_BASE_URL", "https://api.deepseek.com")
    monkeypatch.setenv("CHATQUEUE_MAX_TOOL_ROUNDS", "0")

    s = Settings()
    assert s.model == "deepseek-chat"
    assert s.openai_base_url == "https://api.deepseek.com"
    assert s.tool_round_limit is None


def test_production_requires_api_key(monkeypatch):
    monkeypatch.setenv("CHATQUEUE_ENVIRONMENT", "production")
    monkeypatch.delenv("CHATQUEUE_OPENAI_API_KEY", raising=False)

    with pytest.raises(ValidationError):
        Settings()

    monkeypatch.setenv("CHATQUEUE_OPENAI_API_KEY", "sk-test")
    assert Settings().openai_api_key == "sk-test"


def test_negative_round_limit_rejected(monkeypatch):
    monkeypatch.setenv("CHATQUEUE_MAX_TOOL_ROUNDS", "-1")
    with pytest.raises(ValidationError):
        Settings()
