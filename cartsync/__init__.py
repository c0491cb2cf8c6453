"""Client-side shopping cart state with durable snapshot sync."""
from cartsync.domain.cart import CartItem, CartList, Product
from cartsync.services.cart_api import CartAPI, create_cart_store, use_cart
from cartsync.services.cart_store import CartStore, CartStoreState

__all__ = [
    "CartAPI",
    "CartItem",
    "CartList",
    "CartStore",
    "CartStoreState",
    "Product",
    "create_cart_store",
    "use_cart",
]
