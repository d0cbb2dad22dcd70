"""
Cart Router

Cart endpoints for the browser session resolved by `get_cart_store`.

Every response carries the full cart so the drawer can re-render from a
single payload. Prices are taken from the catalog when an item is added;
the client never sends a price.
"""
import asyncio
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException

from storefront.cart.models import CartState
from storefront.cart.service import CartStore
from storefront.config import get_settings
from storefront.errors import ERROR_ARTWORK_NOT_FOUND, ERROR_SIZE_UNAVAILABLE, CartPersistenceError
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.catalog import CatalogService
from storefront.services.money import format_cents
from .deps import get_cart_store, get_catalog_service
from .models import AddCartItemRequest, CartItemKey, UpdateCartItemRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])


def format_cart_response(state: CartState) -> dict:
    currency = get_settings().currency
    return {
        **state.to_dict(),
        "totalDisplay": format_cents(state.total_cents, currency),
        "currency": currency,
    }


async def _apply(store: CartStore, operation: Callable[[], CartState]) -> dict:
    """Run a store mutation off the event loop and map its failures to HTTP errors."""
    try:
        # Storage client is synchronous
        state = await asyncio.to_thread(operation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CartPersistenceError as e:
        logger.error("Cart write failed for session %s", sanitize_id_for_logging(store.session_id))
        raise HTTPException(status_code=503, detail=str(e))
    return format_cart_response(state)


@router.get("")
async def get_cart(store: CartStore = Depends(get_cart_store)):
    return format_cart_response(store.state)


@router.post("/items")
async def add_cart_item(
    request: AddCartItemRequest,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Add an artwork print; price, title and image come from the catalog."""
    artwork = await catalog.get_artwork(request.artwork_id)
    if not artwork:
        raise HTTPException(status_code=404, detail=ERROR_ARTWORK_NOT_FOUND)
    size_info = artwork.get_size(request.size)
    if not size_info:
        raise HTTPException(status_code=400, detail=ERROR_SIZE_UNAVAILABLE)

    return await _apply(
        store,
        lambda: store.add_item(
            artwork.id,
            size_info.size,
            size_info.price,
            request.quantity,
            title=artwork.title,
            image_url=artwork.main_image_url or "",
            size_display=size_info.size_display,
        ),
    )


@router.patch("/items")
async def update_cart_item(request: UpdateCartItemRequest, store: CartStore = Depends(get_cart_store)):
    return await _apply(store, lambda: store.update_quantity(request.artwork_id, request.size, request.quantity))


@router.delete("/items")
async def remove_cart_item(request: CartItemKey, store: CartStore = Depends(get_cart_store)):
    return await _apply(store, lambda: store.remove_item(request.artwork_id, request.size))


@router.post("/items/accept-price")
async def accept_current_price(
    request: CartItemKey,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Customer accepts the catalog's current price for a flagged line."""
    if store.find_item(request.artwork_id, request.size) is None:
        raise HTTPException(status_code=404, detail="Item not in cart")
    artwork = await catalog.get_artwork(request.artwork_id)
    if not artwork:
        raise HTTPException(status_code=404, detail=ERROR_ARTWORK_NOT_FOUND)
    size_info = artwork.get_size(request.size)
    if not size_info:
        raise HTTPException(status_code=400, detail=ERROR_SIZE_UNAVAILABLE)

    return await _apply(store, lambda: store.reprice_item(request.artwork_id, request.size, size_info.price))


@router.delete("")
async def clear_cart(store: CartStore = Depends(get_cart_store)):
    return await _apply(store, store.clear)


# ==================== DRAWER ====================

@router.post("/open")
async def open_cart(store: CartStore = Depends(get_cart_store)):
    return format_cart_response(store.open_cart())


@router.post("/close")
async def close_cart(store: CartStore = Depends(get_cart_store)):
    return format_cart_response(store.close_cart())


@router.post("/toggle")
async def toggle_cart(store: CartStore = Depends(get_cart_store)):
    return format_cart_response(store.toggle_cart())
