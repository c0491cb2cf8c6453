"""Custom exceptions for the cart store."""
from __future__ import annotations


class CartSyncException(Exception):
    """Base exception for all cart store errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationError(CartSyncException):
    """Cart API used without an active store, or invalid settings."""

    pass


class InitializationError(CartSyncException):
    """Store bootstrap could not be started or completed."""

    pass


class StorageError(CartSyncException):
    """Base for persistence gateway failures."""

    action = "Storage operation"

    def __init__(self, key: str, cause: BaseException | str) -> None:
        super().__init__(f"{self.action} failed for key {key!r}: {cause}")
        self.key = key
        self.cause = cause


class StorageReadError(StorageError):
    """Bootstrap read failed or returned malformed data."""

    action = "Storage read"


class StorageWriteError(StorageError):
    """Snapshot write after a mutation failed."""

    action = "Storage write"
