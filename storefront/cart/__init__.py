"""Cart package: models, snapshot codec, storage, and the cart store."""
from .models import CartLineItem, CartState, total_cents, total_items
from .service import CartStore, CartStoreRegistry, new_session_id
from .storage import CartStorage, InMemoryCartStorage, RedisCartStorage

__all__ = [
    "CartLineItem",
    "CartState",
    "CartStorage",
    "CartStore",
    "CartStoreRegistry",
    "InMemoryCartStorage",
    "RedisCartStorage",
    "new_session_id",
    "total_cents",
    "total_items",
]
