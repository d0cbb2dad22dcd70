"""
Durable storage for cart snapshots.

A backend stores one opaque string per browser session. `RedisCartStorage`
is used in production; `InMemoryCartStorage` backs tests and local runs
without Upstash credentials.
"""
import threading
from typing import Dict, Optional, Protocol

from storefront.db import RedisKeys, TTL, get_redis_sync
from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


class CartStorage(Protocol):
    def load(self, session_id: str) -> Optional[str]: ...

    def save(self, session_id: str, payload: str) -> None: ...

    def delete(self, session_id: str) -> None: ...


class InMemoryCartStorage:
    """Process-local storage; survives store re-creation but not restarts."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, session_id: str) -> Optional[str]:
        with self._lock:
            return self._data.get(session_id)

    def save(self, session_id: str, payload: str) -> None:
        with self._lock:
            self._data[session_id] = payload

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._data.pop(session_id, None)


class RedisCartStorage:
    """Upstash Redis storage keyed by `storefront:cart:{session_id}`."""

    def __init__(self, redis=None, ttl_seconds: int = TTL.CART) -> None:
        self._redis = redis  # lazy
        self.ttl_seconds = ttl_seconds

    @property
    def redis(self):
        if self._redis is None:
            self._redis = get_redis_sync()
        return self._redis

    def load(self, session_id: str) -> Optional[str]:
        data = self.redis.get(RedisKeys.cart_key(session_id))
        if data is None:
            return None
        if isinstance(data, bytes):
            return data.decode("utf-8")
        return str(data)

    def save(self, session_id: str, payload: str) -> None:
        self.redis.set(RedisKeys.cart_key(session_id), payload, ex=self.ttl_seconds)
        logger.debug("Cart snapshot saved for session %s", sanitize_id_for_logging(session_id))

    def delete(self, session_id: str) -> None:
        self.redis.delete(RedisKeys.cart_key(session_id))
