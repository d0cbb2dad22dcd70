"""
Artist Storefront - Main FastAPI Application

Single entry point for the catalog, cart, checkout and webhook routes.
Deployed as one Vercel serverless function.
"""
import sys
from pathlib import Path
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

# Add project root to path for imports (Vercel runs this file directly)
_base_path = Path(__file__).parent.parent
if str(_base_path) not in sys.path:
    sys.path.insert(0, str(_base_path))

from storefront.config import get_settings
from storefront.errors import CartPersistenceError
from storefront.logging import get_logger
from storefront.routers.deps import shutdown_services
from storefront.services.database import close_database

logger = get_logger(__name__)


# ==================== FASTAPI APP ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup: clients are created lazily on first use
    yield
    # Shutdown
    await shutdown_services()
    close_database()


app = FastAPI(
    title="Artist Storefront",
    description="Limited edition print shop: catalog, cart and Stripe checkout",
    version="1.0.0",
    lifespan=lifespan
)

# CORS for the storefront frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().app_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Cart-Session"],
)


@app.exception_handler(CartPersistenceError)
async def cart_persistence_error_handler(request: Request, exc: CartPersistenceError):
    logger.error("Cart storage unavailable on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Include routers
from storefront.routers.cart import router as cart_router
from storefront.routers.catalog import router as catalog_router
from storefront.routers.checkout import router as checkout_router
from storefront.routers.webhooks import router as webhooks_router

app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(webhooks_router)


# ==================== HEALTH CHECK ====================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "storefront"}
