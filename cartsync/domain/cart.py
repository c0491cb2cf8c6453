"""Cart line items and the pure list transitions applied to them.

A cart list is an immutable tuple ordered newest-first. Every transition
returns a new tuple and leaves its input untouched, so a snapshot handed to a
consumer never changes under it.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from cartsync.core.constants import MIN_QUANTITY


@dataclass(frozen=True, slots=True)
class Product:
    """Product data a consumer passes to ``add_to_cart`` (no quantity)."""

    id: str
    title: str
    image_url: str
    unit_price: float

    def __post_init__(self):
        # Decimal and numeric strings become a JSON-encodable float
        object.__setattr__(self, "unit_price", float(self.unit_price))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Product:
        """Build from the presentation layer's product mapping.

        Accepts ``price`` (durable field name) or ``unit_price``.
        """
        price = data["unit_price"] if "unit_price" in data else data["price"]
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            image_url=str(data["image_url"]),
            unit_price=price,
        )


@dataclass(frozen=True, slots=True)
class CartItem:
    """Single line in the cart."""

    id: str
    title: str
    image_url: str
    unit_price: float
    quantity: int = MIN_QUANTITY

    @classmethod
    def from_product(cls, product: Product, quantity: int = MIN_QUANTITY) -> CartItem:
        return cls(
            id=product.id,
            title=product.title,
            image_url=product.image_url,
            unit_price=product.unit_price,
            quantity=quantity,
        )

    def to_dict(self) -> dict[str, Any]:
        """Durable snapshot format. Field names are part of the storage contract."""
        return {
            "id": self.id,
            "title": self.title,
            "image_url": self.image_url,
            "price": self.unit_price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CartItem:
        """Parse one stored entry, raising ``ValueError`` if it is malformed."""
        if not isinstance(data, Mapping):
            raise ValueError(f"cart entry must be an object, got {type(data).__name__}")
        try:
            item_id = data["id"]
            title = data["title"]
            image_url = data["image_url"]
            price = data["price"]
            quantity = data["quantity"]
        except KeyError as e:
            raise ValueError(f"cart entry is missing field {e.args[0]!r}") from None

        for name, value in (("id", item_id), ("title", title), ("image_url", image_url)):
            if not isinstance(value, str):
                raise ValueError(f"cart entry field {name!r} must be a string")
        # bool is an int subclass; reject it explicitly
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise ValueError("cart entry field 'price' must be a number")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError("cart entry field 'quantity' must be an integer")
        if quantity < MIN_QUANTITY:
            raise ValueError(f"cart entry {item_id!r} has quantity {quantity} < {MIN_QUANTITY}")

        return cls(
            id=item_id,
            title=title,
            image_url=image_url,
            unit_price=price,
            quantity=quantity,
        )


CartList = tuple[CartItem, ...]

EMPTY_CART: CartList = ()


def find_item(items: CartList, item_id: str) -> CartItem | None:
    return next((item for item in items if item.id == item_id), None)


def _with_quantity_delta(items: CartList, item_id: str, delta: int) -> CartList:
    return tuple(
        replace(item, quantity=item.quantity + delta) if item.id == item_id else item
        for item in items
    )


def add_product(items: CartList, product: Product) -> CartList:
    """Bump the quantity of an existing line, or prepend a new one with quantity 1."""
    if find_item(items, product.id) is not None:
        return _with_quantity_delta(items, product.id, 1)
    return (CartItem.from_product(product), *items)


def increment_item(items: CartList, item_id: str) -> CartList:
    """Add one unit to ``item_id``; unknown ids leave the list unchanged."""
    if find_item(items, item_id) is None:
        return items
    return _with_quantity_delta(items, item_id, 1)


def decrement_item(items: CartList, item_id: str) -> CartList:
    """Remove one unit from ``item_id``, dropping the line when it reaches zero."""
    existing = find_item(items, item_id)
    if existing is None:
        return items
    if existing.quantity > MIN_QUANTITY:
        return _with_quantity_delta(items, item_id, -1)
    return tuple(item for item in items if item.id != item_id)


def serialize_cart(items: CartList) -> str:
    return json.dumps([item.to_dict() for item in items], ensure_ascii=False)


def deserialize_cart(blob: str | bytes) -> CartList:
    """Parse a stored snapshot.

    Raises:
        ValueError: blob is not a JSON array of valid entries, or repeats an id.
    """
    # json.JSONDecodeError is a ValueError subclass
    raw = json.loads(blob)
    if not isinstance(raw, list):
        raise ValueError(f"cart snapshot must be a JSON array, got {type(raw).__name__}")

    items = tuple(CartItem.from_dict(entry) for entry in raw)
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"cart snapshot repeats id {item.id!r}")
        seen.add(item.id)
    return items
