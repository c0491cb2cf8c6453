"""Environment-driven configuration for the cart store."""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from cartsync.core.constants import (
    DEFAULT_CART_TTL_SECONDS,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_STORAGE_KEY,
    DEFAULT_STORAGE_RETRIES,
)
from cartsync.core.exceptions import ConfigurationError


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


@dataclass(slots=True)
class RetryConfig:
    attempts: int
    initial_delay: float


@dataclass(slots=True)
class Settings:
    redis_url: str | None
    storage_key: str
    cart_ttl_seconds: int
    retry: RetryConfig
    log_level: str

    @property
    def uses_redis(self) -> bool:
        return bool(self.redis_url)


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    retry = RetryConfig(
        attempts=_int_env("CART_STORAGE_RETRIES", DEFAULT_STORAGE_RETRIES, minimum=1),
        initial_delay=_float_env("CART_RETRY_DELAY", DEFAULT_RETRY_DELAY_SECONDS),
    )

    return Settings(
        redis_url=os.getenv("REDIS_URL") or None,
        storage_key=os.getenv("CART_STORAGE_KEY") or DEFAULT_STORAGE_KEY,
        cart_ttl_seconds=_int_env("CART_TTL_SECONDS", DEFAULT_CART_TTL_SECONDS),
        retry=retry,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
