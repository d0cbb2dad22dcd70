"""
Supabase Database Service

Groups the repositories behind one object created from the async Supabase
client.

Usage:
    from storefront.services.database import get_database_async

    db = await get_database_async()
    artwork = await db.artworks.get_by_id("a1")

    # Eager initialization (scripts, warm-up):
    await init_database()
"""

import asyncio
from typing import Optional

from supabase._async.client import AsyncClient

from storefront.db import get_supabase
from storefront.logging import get_logger
from storefront.services.repositories import ArtworkRepository, CollectionRepository, OrderRepository

logger = get_logger(__name__)


class Database:
    """Supabase client plus the storefront repositories."""

    def __init__(self, client: AsyncClient):
        """Use Database.create() or init_database() outside of tests."""
        self.client = client
        self.artworks = ArtworkRepository(client)
        self.collections = CollectionRepository(client)
        self.orders = OrderRepository(client)

    @classmethod
    async def create(cls) -> "Database":
        client = await get_supabase()
        return cls(client)


_db: Optional[Database] = None
_db_lock: Optional[asyncio.Lock] = None


def _get_lock() -> asyncio.Lock:
    """Create the init lock inside the running loop."""
    global _db_lock
    if _db_lock is None:
        _db_lock = asyncio.Lock()
    return _db_lock


async def init_database() -> Database:
    """Initialize the database singleton (idempotent)."""
    global _db
    if _db is not None:
        return _db

    async with _get_lock():
        if _db is None:
            logger.info("Initializing async Supabase client...")
            _db = await Database.create()
            logger.info("Async Supabase client initialized successfully")
    return _db


async def get_database_async() -> Database:
    """Database with lazy initialization (used by the router dependencies)."""
    if _db is None:
        return await init_database()
    return _db


def close_database() -> None:
    """Drop the singleton (FastAPI shutdown)."""
    global _db
    if _db is not None:
        _db = None
        logger.info("Supabase client released")
