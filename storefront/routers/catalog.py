"""
Catalog Router

Read-only artwork and collection endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from storefront.errors import ERROR_ARTWORK_NOT_FOUND, ERROR_COLLECTION_NOT_FOUND
from storefront.logging import get_logger
from storefront.services.catalog import CatalogService
from storefront.services.money import format_cents
from .deps import get_catalog_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


def _artwork_summary(artwork) -> dict:
    min_price = artwork.min_price_cents
    return {
        **artwork.model_dump(mode="json"),
        "main_image_url": artwork.main_image_url,
        "min_price_cents": min_price,
        "price_display": format_cents(min_price),
        "sold_out": bool(artwork.sizes) and all(s.is_sold_out for s in artwork.sizes),
    }


@router.get("/artworks")
async def list_artworks(
    collection_id: Optional[str] = None,
    featured: Optional[bool] = None,
    catalog: CatalogService = Depends(get_catalog_service),
):
    artworks = await catalog.list_artworks(collection_id=collection_id, featured=featured)
    return {"artworks": [_artwork_summary(a) for a in artworks], "count": len(artworks)}


@router.get("/artworks/{artwork_id}")
async def get_artwork(artwork_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    artwork = await catalog.get_artwork(artwork_id)
    if not artwork:
        raise HTTPException(status_code=404, detail=ERROR_ARTWORK_NOT_FOUND)

    related = await catalog.get_related_artworks(artwork)
    return {
        **_artwork_summary(artwork),
        "sizes": [
            {
                **size.model_dump(),
                "editions_remaining": size.editions_remaining,
                "sold_out": size.is_sold_out,
                "price_display": format_cents(size.price),
            }
            for size in artwork.sizes
        ],
        "related": [_artwork_summary(a) for a in related],
    }


@router.get("/collections")
async def list_collections(featured: bool = False, catalog: CatalogService = Depends(get_catalog_service)):
    collections = await catalog.list_collections(featured_only=featured)
    return {"collections": [c.model_dump(mode="json") for c in collections]}


@router.get("/collections/{collection_id}")
async def get_collection(collection_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    collection = await catalog.get_collection(collection_id)
    if not collection:
        raise HTTPException(status_code=404, detail=ERROR_COLLECTION_NOT_FOUND)

    artworks = await catalog.list_artworks(collection_id=collection_id)
    return {
        **collection.model_dump(mode="json"),
        "artworks": [_artwork_summary(a) for a in artworks],
    }
