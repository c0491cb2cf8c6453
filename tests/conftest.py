"""Shared fixtures: fake storage backends and sample products."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from cartsync.domain.cart import CartItem, Product, serialize_cart
from cartsync.integrations.storage import InMemoryBlobStorage

STORAGE_KEY = "@GoMarketplace:products"


@dataclass
class FakeRedisClient:
    """Async stand-in for ``redis.asyncio.Redis``."""

    data: dict[str, str] = field(default_factory=dict)
    expiry: dict[str, int] = field(default_factory=dict)
    set_calls: list[tuple[str, int | None]] = field(default_factory=list)
    closed: bool = False

    async def get(self, key: str):
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = ex
        self.set_calls.append((key, ex))
        return True

    async def aclose(self) -> None:
        self.closed = True


class RecordingStorage(InMemoryBlobStorage):
    """In-memory storage that records writes and can be told to fail."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.writes: list[str] = []
        self.fail_writes = 0
        self.reject_writes = 0
        self.fail_reads = False
        self.read_gate: asyncio.Event | None = None
        self.write_gate: asyncio.Event | None = None
        self.closed = False

    def seed(self, blob: str, key: str = STORAGE_KEY) -> None:
        self._data[key] = blob

    async def get(self, key: str) -> str | None:
        if self.read_gate is not None:
            await self.read_gate.wait()
        if self.fail_reads:
            raise ConnectionError("storage offline")
        return await super().get(key)

    async def set(self, key: str, blob: str) -> bool:
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_writes:
            self.fail_writes -= 1
            raise ConnectionError("storage offline")
        if self.reject_writes:
            self.reject_writes -= 1
            return False
        self.writes.append(blob)
        return await super().set(key, blob)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture
def make_storage():
    """Factory for storage pre-seeded with a snapshot of the given items."""

    def _make(*items: CartItem) -> RecordingStorage:
        return RecordingStorage({STORAGE_KEY: serialize_cart(items)})

    return _make


@pytest.fixture
def product_a() -> Product:
    return Product(id="a", title="T", image_url="u", unit_price=10)


@pytest.fixture
def product_b() -> Product:
    return Product(id="b", title="Bag", image_url="https://img/b.png", unit_price=25.5)


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedisClient:
    import cartsync.integrations.storage as storage_module

    client = FakeRedisClient()
    monkeypatch.setattr(storage_module.aioredis, "from_url", lambda *args, **kwargs: client)
    return client
