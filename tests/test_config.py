"""Tests for environment-driven settings and service wiring."""

from unittest.mock import patch

import pytest

from dimensional_chat.config import DEFAULT_API_URL, Settings, load_settings
from dimensional_chat.llm import EchoCompletion, HttpCompletion
from dimensional_chat.services import build_completion, build_services

ENV_VARS = (
    "DEEPSEEK_API_KEY", "DEEPSEEK_API_URL", "DEEPSEEK_MODEL", "LLM_TEMPERATURE",
    "LLM_TIMEOUT", "COMPLETION_BACKEND", "CACHE_TTL", "SESSION_TIMEOUT",
    "PRAYER_LIMIT", "ENVIRONMENT", "NODE_ENV", "HOST", "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.api_url == DEFAULT_API_URL
    assert settings.model == "deepseek-chat"
    assert settings.port == 3000
    assert settings.completion_backend == "http"
    assert settings.environment == "development"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LLM_TEMPERATURE", "0.2")
    monkeypatch.setenv("PRAYER_LIMIT", "5")
    monkeypatch.setenv("NODE_ENV", "production")
    settings = load_settings()
    assert settings.api_key == "sk-test"
    assert settings.port == 8080
    assert settings.temperature == 0.2
    assert settings.prayer_limit == 5
    assert settings.environment == "production"


def test_environment_takes_precedence_over_node_env(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "staging")
    monkeypatch.setenv("NODE_ENV", "production")
    assert load_settings().environment == "staging"


def test_build_completion_echo():
    assert isinstance(build_completion(Settings(completion_backend="echo")), EchoCompletion)


def test_build_completion_http():
    assert isinstance(build_completion(Settings(api_key="sk-test")), HttpCompletion)


def test_build_services_uses_injected_completion():
    completion = EchoCompletion()
    services = build_services(Settings(prayer_limit=1), completion)
    assert services.completion is completion
    sid, _ = services.sessions.create()
    assert services.sessions.remaining_prayers(sid) == 1


def test_launcher_uses_settings_host_and_port(monkeypatch):
    import main

    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "8123")
    monkeypatch.setattr("sys.argv", ["main.py"])
    with patch("main.uvicorn.run") as run:
        main.main()
    assert run.call_args.kwargs["host"] == "127.0.0.1"
    assert run.call_args.kwargs["port"] == 8123
