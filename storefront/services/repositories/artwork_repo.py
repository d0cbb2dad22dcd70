"""Artwork Repository - Artwork catalog operations."""
from typing import Any, Dict, List, Optional

from .base import BaseRepository
from storefront.services.models import Artwork


class ArtworkRepository(BaseRepository):
    """Artwork database operations."""

    async def get_all(self, collection_id: Optional[str] = None, featured: Optional[bool] = None) -> List[Artwork]:
        """List artworks, newest first."""
        query = self.client.table("artworks").select("*")
        if collection_id:
            query = query.eq("collection_id", collection_id)
        if featured is not None:
            query = query.eq("featured", featured)
        result = await query.order("created_at", desc=True).execute()
        return [Artwork(**row) for row in result.data or []]

    async def get_by_id(self, artwork_id: str) -> Optional[Artwork]:
        result = await self.client.table("artworks").select("*").eq("id", artwork_id).limit(1).execute()
        if not result.data:
            return None
        return Artwork(**result.data[0])

    async def get_by_ids(self, artwork_ids: List[str]) -> Dict[str, Artwork]:
        """Fetch several artworks in one round trip, keyed by id."""
        if not artwork_ids:
            return {}
        result = await self.client.table("artworks").select("*").in_("id", list(set(artwork_ids))).execute()
        return {row["id"]: Artwork(**row) for row in result.data or []}

    async def update_sizes(self, artwork_id: str, sizes: List[Dict[str, Any]]) -> None:
        await self.client.table("artworks").update({"sizes": sizes}).eq("id", artwork_id).execute()
