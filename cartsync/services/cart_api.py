"""Consumer-facing cart capability and store bootstrap helper."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from cartsync.core.config import Settings, load_settings
from cartsync.core.exceptions import ConfigurationError
from cartsync.domain.cart import CartList, Product
from cartsync.integrations.storage import create_blob_storage
from cartsync.logging_config import setup_logging
from cartsync.services.cart_store import NO_ACTIVE_STORE, CartStore, CartStoreState

logger = logging.getLogger(__name__)


class CartAPI:
    """The only cart surface handed to presentation code.

    Wraps an explicitly injected ``CartStore``. Using it without a store, or
    after the store has been closed, raises ``ConfigurationError``.
    """

    __slots__ = ("_store",)

    def __init__(self, store: CartStore | None) -> None:
        if store is None:
            raise ConfigurationError(NO_ACTIVE_STORE)
        self._store = store

    def _active_store(self) -> CartStore:
        if self._store.state is CartStoreState.CLOSED:
            raise ConfigurationError(NO_ACTIVE_STORE)
        return self._store

    @property
    def products(self) -> CartList:
        return self._active_store().products

    async def add_to_cart(self, product: Product | Mapping[str, Any]) -> None:
        await self._active_store().add_to_cart(product)

    async def increment(self, item_id: str) -> None:
        await self._active_store().increment(item_id)

    async def decrement(self, item_id: str) -> None:
        await self._active_store().decrement(item_id)


def use_cart(store: CartStore | None) -> CartAPI:
    """Return the cart API for ``store``, failing fast when there is none."""
    return CartAPI(store)


async def create_cart_store(settings: Settings | None = None) -> CartStore:
    """Build storage from settings, then construct and bootstrap a store.

    The returned store owns its storage client and closes it in ``aclose``.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    storage = create_blob_storage(settings)
    store = CartStore(
        storage,
        settings.storage_key,
        storage_retries=settings.retry.attempts,
        retry_delay=settings.retry.initial_delay,
        close_storage=True,
    )
    await store.start()
    logger.info("Cart store bootstrapped (redis=%s)", settings.uses_redis)
    return store
