"""
Shared Dependencies for Routers

Lazy-loaded singletons to optimize cold start.
Import heavy modules only when needed.
"""

from typing import TYPE_CHECKING, Optional

from fastapi import Request, Response

from storefront.logging import get_logger

if TYPE_CHECKING:
    from storefront.cart.service import CartStore, CartStoreRegistry
    from storefront.checkout.service import CheckoutService
    from storefront.services.catalog import CatalogService
    from storefront.services.payments import PaymentService

logger = get_logger(__name__)

CART_SESSION_HEADER = "X-Cart-Session"
CART_SESSION_COOKIE = "cart_session"


# ==================== LAZY SINGLETONS ====================

_payment_service: Optional["PaymentService"] = None
_cart_registry: Optional["CartStoreRegistry"] = None


def get_payment_service() -> "PaymentService":
    """Get or create PaymentService singleton (lazy loaded)"""
    global _payment_service
    if _payment_service is None:
        from storefront.services.payments import PaymentService
        _payment_service = PaymentService()
    return _payment_service


def get_cart_registry() -> "CartStoreRegistry":
    """
    Get or create the cart registry (lazy loaded).

    Redis-backed when Upstash is configured; otherwise carts live in process
    memory only, which is enough for local development.
    """
    global _cart_registry
    if _cart_registry is None:
        from storefront.cart.service import CartStoreRegistry
        from storefront.cart.storage import InMemoryCartStorage, RedisCartStorage
        from storefront.config import get_settings

        settings = get_settings()
        if settings.upstash_redis_rest_url and settings.upstash_redis_rest_token:
            storage = RedisCartStorage(ttl_seconds=settings.cart_ttl_seconds)
        else:
            logger.warning("Upstash Redis not configured, carts are kept in memory only")
            storage = InMemoryCartStorage()
        _cart_registry = CartStoreRegistry(storage, open_on_add=settings.cart_open_on_add)
    return _cart_registry


async def get_catalog_service() -> "CatalogService":
    from storefront.services.catalog import CatalogService
    from storefront.services.database import get_database_async
    return CatalogService(await get_database_async())


async def get_checkout_service() -> "CheckoutService":
    from storefront.checkout.service import CheckoutService
    from storefront.services.database import get_database_async
    return CheckoutService(await get_database_async(), get_payment_service())


# ==================== CART SESSION ====================

def get_cart_store(request: Request, response: Response) -> "CartStore":
    """
    Resolve the browser's cart session and return its store.

    The session id comes from the X-Cart-Session header or the cart_session
    cookie; a new id is issued as a cookie when neither is present.

    Kept synchronous so FastAPI runs it in its threadpool; the registry
    reads storage through the blocking Redis client.
    """
    from storefront.cart.service import new_session_id
    from storefront.config import get_settings

    session_id = request.headers.get(CART_SESSION_HEADER) or request.cookies.get(CART_SESSION_COOKIE)
    if not session_id:
        session_id = new_session_id()
        response.set_cookie(
            CART_SESSION_COOKIE,
            session_id,
            max_age=get_settings().cart_ttl_seconds,
            httponly=True,
            samesite="lax",
            secure=request.url.scheme == "https",
        )
    response.headers[CART_SESSION_HEADER] = session_id
    return get_cart_registry().get(session_id)


# ==================== SHUTDOWN HELPERS ====================
async def shutdown_services():
    """Cleanly close singleton services (http clients, etc.)."""
    global _payment_service, _cart_registry
    _cart_registry = None
    if _payment_service is not None:
        try:
            await _payment_service.aclose()
        finally:
            _payment_service = None
