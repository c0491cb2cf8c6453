"""Tests for environment-driven settings."""
from __future__ import annotations

import pytest

from cartsync.core.config import load_settings
from cartsync.core.constants import (
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_STORAGE_KEY,
    DEFAULT_STORAGE_RETRIES,
)
from cartsync.core.exceptions import ConfigurationError

ENV_VARS = (
    "REDIS_URL",
    "CART_STORAGE_KEY",
    "CART_TTL_SECONDS",
    "CART_STORAGE_RETRIES",
    "CART_RETRY_DELAY",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr("cartsync.core.config.load_dotenv", lambda: False)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()

    assert settings.redis_url is None
    assert settings.uses_redis is False
    assert settings.storage_key == DEFAULT_STORAGE_KEY
    assert settings.cart_ttl_seconds == 0
    assert settings.retry.attempts == DEFAULT_STORAGE_RETRIES
    assert settings.retry.initial_delay == DEFAULT_RETRY_DELAY_SECONDS
    assert settings.log_level == "INFO"


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("CART_STORAGE_KEY", "cart:42")
    monkeypatch.setenv("CART_TTL_SECONDS", "86400")
    monkeypatch.setenv("CART_STORAGE_RETRIES", "5")
    monkeypatch.setenv("CART_RETRY_DELAY", "0.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.uses_redis is True
    assert settings.storage_key == "cart:42"
    assert settings.cart_ttl_seconds == 86400
    assert settings.retry.attempts == 5
    assert settings.retry.initial_delay == 0.5
    assert settings.log_level == "DEBUG"


def test_empty_redis_url_means_no_redis(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "")

    assert load_settings().redis_url is None


@pytest.mark.parametrize(
    "name,value",
    [
        ("CART_TTL_SECONDS", "soon"),
        ("CART_TTL_SECONDS", "-1"),
        ("CART_STORAGE_RETRIES", "0"),
        ("CART_RETRY_DELAY", "fast"),
        ("CART_RETRY_DELAY", "-0.1"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError, match=name):
        load_settings()
