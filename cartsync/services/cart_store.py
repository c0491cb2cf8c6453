"""Cart store: canonical in-memory cart with an ordered snapshot writer.

Mutations run one at a time under a FIFO lock against the single state cell
``_items``. Each mutation assigns the new list, publishes it to subscribers
and marks it as the pending snapshot. A single writer task always writes the
newest pending snapshot, so storage moves forward in mutation order and never
trails memory by more than the write in flight plus one pending snapshot.

Mutations issued before bootstrap has finished wait for it (starting it if
needed) and are then applied in call order on top of the loaded snapshot.
"""
from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any

from cartsync.core.constants import (
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_STORAGE_KEY,
    DEFAULT_STORAGE_RETRIES,
)
from cartsync.core.exceptions import (
    ConfigurationError,
    InitializationError,
    StorageReadError,
    StorageWriteError,
)
from cartsync.core.retry import retry_async
from cartsync.domain.cart import (
    EMPTY_CART,
    CartList,
    Product,
    add_product,
    decrement_item,
    deserialize_cart,
    increment_item,
    serialize_cart,
)
from cartsync.integrations.storage import BlobStorage

logger = logging.getLogger(__name__)

NO_ACTIVE_STORE = "no active cart store"

CartSubscriber = Callable[[CartList], Awaitable[None] | None]


class CartStoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class CartStore:
    """Owns the cart list and keeps the stored snapshot in sync with it."""

    def __init__(
        self,
        storage: BlobStorage,
        storage_key: str = DEFAULT_STORAGE_KEY,
        *,
        storage_retries: int = DEFAULT_STORAGE_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
        close_storage: bool = False,
    ) -> None:
        self._storage = storage
        self._storage_key = storage_key
        self._storage_retries = storage_retries
        self._retry_delay = retry_delay
        self._close_storage = close_storage

        self._items: CartList = EMPTY_CART
        self._state = CartStoreState.UNINITIALIZED
        self._subscribers: list[CartSubscriber] = []

        self._mutation_lock = asyncio.Lock()
        self._pending_write: CartList | None = None
        self._write_wanted = asyncio.Event()
        self._writes_idle = asyncio.Event()
        self._writes_idle.set()
        self._bootstrap_task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> CartStoreState:
        return self._state

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def products(self) -> CartList:
        """Current snapshot; empty until bootstrap has loaded the stored one."""
        self._ensure_open()
        return self._items

    # ============== LIFECYCLE ==============

    async def start(self) -> None:
        """Run bootstrap once; concurrent callers wait for the same run."""
        self._ensure_open()
        if self._bootstrap_task is None:
            self._bootstrap_task = asyncio.create_task(self._bootstrap(), name="cart-bootstrap")

        task = self._bootstrap_task
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                raise InitializationError("cart bootstrap was cancelled") from None
            raise
        except Exception as e:
            raise InitializationError(f"cart bootstrap failed: {e}") from e

    async def _bootstrap(self) -> None:
        items = await self._load_snapshot()
        self._items = items
        self._writer_task = asyncio.create_task(self._write_loop(), name="cart-writer")
        self._state = CartStoreState.READY
        logger.info("Cart store ready with %s item(s) from %r", len(items), self._storage_key)
        await self._publish(items)

    async def _load_snapshot(self) -> CartList:
        try:
            blob = await retry_async(
                lambda: self._storage.get(self._storage_key),
                max_attempts=self._storage_retries,
                initial_delay=self._retry_delay,
                description="Cart snapshot read",
            )
        except Exception as e:
            error = StorageReadError(self._storage_key, e)
            logger.warning("%s; starting with an empty cart", error)
            return EMPTY_CART

        if not blob:
            return EMPTY_CART
        try:
            return deserialize_cart(blob)
        except ValueError as e:
            error = StorageReadError(self._storage_key, e)
            logger.warning("%s; starting with an empty cart", error)
            return EMPTY_CART

    async def flush(self) -> None:
        """Wait until the newest pending snapshot has been written (or given up on)."""
        if self._writer_task is not None and not self._writer_task.done():
            await self._writes_idle.wait()

    async def aclose(self) -> None:
        """Flush pending writes, stop the writer and detach subscribers."""
        async with self._mutation_lock:
            if self._state is CartStoreState.CLOSED:
                return
            if self._bootstrap_task is not None:
                with contextlib.suppress(Exception, asyncio.CancelledError):
                    await self._bootstrap_task
            await self.flush()

            if self._writer_task is not None:
                self._writer_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._writer_task
                self._writer_task = None

            self._state = CartStoreState.CLOSED
            self._subscribers.clear()
            if self._close_storage and hasattr(self._storage, "close"):
                await self._storage.close()
            logger.info("Cart store closed")

    async def __aenter__(self) -> CartStore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _ensure_open(self) -> None:
        if self._state is CartStoreState.CLOSED:
            raise ConfigurationError(NO_ACTIVE_STORE)

    # ============== MUTATIONS ==============

    async def add_to_cart(self, product: Product | Mapping[str, Any]) -> CartList:
        if not isinstance(product, Product):
            product = Product.from_dict(product)
        return await self._mutate(
            "add_to_cart", product.id, lambda items: add_product(items, product)
        )

    async def increment(self, item_id: str) -> CartList:
        return await self._mutate(
            "increment", item_id, lambda items: increment_item(items, item_id)
        )

    async def decrement(self, item_id: str) -> CartList:
        return await self._mutate(
            "decrement", item_id, lambda items: decrement_item(items, item_id)
        )

    async def _mutate(
        self, operation: str, item_id: str, transition: Callable[[CartList], CartList]
    ) -> CartList:
        async with self._mutation_lock:
            self._ensure_open()
            await self.start()

            updated = transition(self._items)
            self._items = updated
            logger.debug("Cart %s(%s): %s line(s)", operation, item_id, len(updated))

            await self._publish(updated)
            self._schedule_write(updated)
            return updated

    # ============== SUBSCRIBERS ==============

    def subscribe(self, handler: CartSubscriber) -> Callable[[], None]:
        """Register ``handler`` for every published snapshot.

        Handlers run while the mutation lock is held, so they must not await
        another mutation on this store. Returns a callable that removes the
        handler again.
        """
        self._ensure_open()
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    async def _publish(self, items: CartList) -> None:
        for handler in list(self._subscribers):
            try:
                result = handler(items)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("Cart subscriber %r failed: %s", handler, e)

    # ============== PERSISTENCE ==============

    def _schedule_write(self, snapshot: CartList) -> None:
        # Older unwritten snapshots are superseded by this one
        self._pending_write = snapshot
        self._writes_idle.clear()
        self._write_wanted.set()

    async def _write_loop(self) -> None:
        while True:
            await self._write_wanted.wait()
            self._write_wanted.clear()
            snapshot, self._pending_write = self._pending_write, None
            if snapshot is not None:
                try:
                    await self._write_snapshot(snapshot)
                except Exception as e:
                    logger.exception("Cart writer failed on a snapshot: %s", e)
            if self._pending_write is None:
                self._writes_idle.set()

    async def _write_snapshot(self, snapshot: CartList) -> None:
        async def attempt() -> None:
            if not await self._storage.set(self._storage_key, blob):
                raise StorageWriteError(self._storage_key, "storage rejected the write")

        try:
            blob = serialize_cart(snapshot)
            await retry_async(
                attempt,
                max_attempts=self._storage_retries,
                initial_delay=self._retry_delay,
                description="Cart snapshot write",
            )
        except StorageWriteError as e:
            logger.error("%s; in-memory cart stays authoritative", e)
        except Exception as e:
            logger.error(
                "%s; in-memory cart stays authoritative", StorageWriteError(self._storage_key, e)
            )
