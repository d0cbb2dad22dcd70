"""
Repository Pattern for Database Operations

- ArtworkRepository: artworks and their print sizes
- CollectionRepository: collection listings
- OrderRepository: paid orders recorded from Stripe
"""
from .artwork_repo import ArtworkRepository
from .collection_repo import CollectionRepository
from .order_repo import OrderRepository

__all__ = [
    "ArtworkRepository",
    "CollectionRepository",
    "OrderRepository",
]
