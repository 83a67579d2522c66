from __future__ import annotations

import pytest

from cli.config import DEFAULT_BASE_URL, load_config
from fastapi.testclient import TestClient

from app.main import create_app
from settings import get_settings
from storage.reading_store import build_default_store


@pytest.fixture(autouse=True)
def _clear_caches():
    get_settings.cache_clear()
    build_default_store.cache_clear()
    yield
    build_default_store.cache_clear()
    get_settings.cache_clear()


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("READING_STORE_CAPACITY", "25")
    monkeypatch.setenv("RECENT_DEFAULT_LIMIT", "4")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()
    store = build_default_store()

    assert settings.log_level == "DEBUG"
    assert store.capacity == 25
    assert store.default_limit == 4


@pytest.mark.parametrize("raw", ["", "  ", "lots", "0", "-1"])
def test_invalid_capacity_falls_back_to_default(monkeypatch, raw: str) -> None:
    monkeypatch.setenv("READING_STORE_CAPACITY", raw)

    assert get_settings().store_capacity == 100


def test_defaults_without_environment(monkeypatch) -> None:
    for name in ("READING_STORE_CAPACITY", "RECENT_DEFAULT_LIMIT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.store_capacity == 100
    assert settings.recent_default_limit == 10
    assert settings.log_level == "INFO"


def test_cli_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://sensor-hub:3000/")
    monkeypatch.setenv("CLI_REFRESH_INTERVAL", "0.5")
    monkeypatch.setenv("CLI_RECENT_LIMIT", "bogus")

    config = load_config()

    assert config.base_url == "http://sensor-hub:3000"
    assert config.refresh_interval == 0.5
    assert config.recent_limit == 20


def test_cli_arguments_override_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://sensor-hub:3000")

    config = load_config(base_url="http://other:9000", recent_limit=7, request_timeout=1.5)

    assert config.base_url == "http://other:9000"
    assert config.recent_limit == 7
    assert config.request_timeout == 1.5


def test_cli_default_base_url(monkeypatch) -> None:
    monkeypatch.delenv("API_BASE_URL", raising=False)

    assert load_config().base_url == DEFAULT_BASE_URL


def test_cors_origins_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://dashboard.local, ,http://field-tablet:8080")

    assert get_settings().cors_origins == ("http://dashboard.local", "http://field-tablet:8080")

    with TestClient(create_app()) as client:
        allowed = client.get("/api/health", headers={"Origin": "http://dashboard.local"})
        foreign = client.get("/api/health", headers={"Origin": "http://elsewhere.test"})

    assert allowed.headers["access-control-allow-origin"] == "http://dashboard.local"
    assert "access-control-allow-origin" not in foreign.headers


def test_blank_cors_origins_allow_everyone(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", " , ")

    assert get_settings().cors_origins == ("*",)
