"""
Catalog Service

Read side of the artwork catalog: listings, detail pages, collections, and
the batch lookups used by checkout validation.
"""

from typing import Dict, List, Optional

from storefront.logging import get_logger
from storefront.services.database import Database
from storefront.services.models import Artwork, Collection

logger = get_logger(__name__)


class CatalogService:
    """Artwork and collection queries."""

    def __init__(self, db: Database):
        self.db = db

    async def list_artworks(self, collection_id: Optional[str] = None, featured: Optional[bool] = None) -> List[Artwork]:
        return await self.db.artworks.get_all(collection_id=collection_id, featured=featured)

    async def get_artwork(self, artwork_id: str) -> Optional[Artwork]:
        return await self.db.artworks.get_by_id(artwork_id)

    async def get_artworks(self, artwork_ids: List[str]) -> Dict[str, Artwork]:
        """Artworks keyed by id; ids missing from the catalog are absent."""
        found = await self.db.artworks.get_by_ids(artwork_ids)
        missing = set(artwork_ids) - set(found)
        if missing:
            logger.info("Catalog lookup: %d artwork id(s) not found", len(missing))
        return found

    async def list_collections(self, featured_only: bool = False) -> List[Collection]:
        return await self.db.collections.get_all(featured_only=featured_only)

    async def get_collection(self, collection_id: str) -> Optional[Collection]:
        return await self.db.collections.get_by_id(collection_id)

    async def get_related_artworks(self, artwork: Artwork, limit: int = 4) -> List[Artwork]:
        """Other artworks from the same collection."""
        if not artwork.collection_id:
            return []
        siblings = await self.list_artworks(collection_id=artwork.collection_id)
        return [a for a in siblings if a.id != artwork.id][:limit]
