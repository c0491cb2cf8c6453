"""Key-value blob storage backing the cart snapshot."""
from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import redis.asyncio as aioredis

from cartsync.core.config import Settings
from cartsync.core.constants import REDIS_SOCKET_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


@runtime_checkable
class BlobStorage(Protocol):
    """Opaque blob store: ``get`` returns None for a missing key."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, blob: str) -> bool: ...


class InMemoryBlobStorage:
    """Process-local storage for tests and Redis-less setups."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, blob: str) -> bool:
        self._data[key] = blob
        return True

    async def close(self) -> None:
        pass


class RedisBlobStorage:
    """Blob storage persisted in Redis.

    Connects lazily on first use. With ``ttl_seconds`` > 0 every write
    refreshes the key's expiry; otherwise the key never expires.
    Client errors are propagated to the caller.
    """

    def __init__(self, redis_url: str, ttl_seconds: int = 0) -> None:
        self._redis_url = redis_url
        self._ttl_seconds = ttl_seconds
        self._client: Any = None

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=REDIS_SOCKET_TIMEOUT_SECONDS,
                socket_timeout=REDIS_SOCKET_TIMEOUT_SECONDS,
            )
            logger.info("Redis cart storage enabled")
        return self._client

    async def get(self, key: str) -> str | None:
        client = self._ensure_client()
        return await client.get(key)

    async def set(self, key: str, blob: str) -> bool:
        client = self._ensure_client()
        if self._ttl_seconds > 0:
            result = await client.set(key, blob, ex=self._ttl_seconds)
        else:
            result = await client.set(key, blob)
        return bool(result)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def create_blob_storage(settings: Settings) -> InMemoryBlobStorage | RedisBlobStorage:
    if settings.redis_url:
        return RedisBlobStorage(settings.redis_url, ttl_seconds=settings.cart_ttl_seconds)
    logger.warning("REDIS_URL is not set; cart snapshot is kept in memory only")
    return InMemoryBlobStorage()
