"""Collection Repository - Collection listing operations."""
from typing import List, Optional

from .base import BaseRepository
from storefront.services.models import Collection


class CollectionRepository(BaseRepository):
    """Collection database operations."""

    async def get_all(self, featured_only: bool = False) -> List[Collection]:
        query = self.client.table("collections").select("*")
        if featured_only:
            query = query.eq("featured", True)
        result = await query.order("order").execute()
        return [Collection(**row) for row in result.data or []]

    async def get_by_id(self, collection_id: str) -> Optional[Collection]:
        result = await self.client.table("collections").select("*").eq("id", collection_id).limit(1).execute()
        if not result.data:
            return None
        return Collection(**result.data[0])
