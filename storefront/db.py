"""
Database Module - Supabase and Redis Clients

Provides lazily created singletons of:
- Async Supabase client for catalog and order tables
- Sync Upstash Redis client for cart snapshots
"""

from typing import Optional

from supabase._async.client import AsyncClient, create_client as acreate_client
from upstash_redis import Redis

from storefront.config import get_settings

_async_supabase_client: Optional[AsyncClient] = None
_sync_redis_client: Optional[Redis] = None


async def get_supabase() -> AsyncClient:
    """
    Get async Supabase client (singleton).
    """
    global _async_supabase_client

    if _async_supabase_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _async_supabase_client = await acreate_client(
            settings.supabase_url, settings.supabase_service_role_key
        )

    return _async_supabase_client


def get_redis_sync() -> Redis:
    """
    Get sync Upstash Redis client (singleton).

    Cart mutations are synchronous, so the cart store talks to Redis through
    the blocking REST client.
    """
    global _sync_redis_client

    if _sync_redis_client is None:
        settings = get_settings()
        if not settings.upstash_redis_rest_url or not settings.upstash_redis_rest_token:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _sync_redis_client = Redis(
            url=settings.upstash_redis_rest_url, token=settings.upstash_redis_rest_token
        )

    return _sync_redis_client


class RedisKeys:
    """Redis key prefixes for different data types."""

    # Fixed application key; one entry per browser session
    CART = "storefront:cart:"  # storefront:cart:{session_id}

    @staticmethod
    def cart_key(session_id: str) -> str:
        return f"{RedisKeys.CART}{session_id}"


class TTL:
    """Time-to-live constants for Redis keys (seconds)."""

    CART = 2592000  # 30 days, like browser local storage in practice
