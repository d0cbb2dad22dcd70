"""Order Repository - Order operations."""
from typing import Any, Dict, List, Optional

from .base import BaseRepository
from storefront.services.models import Order


class OrderRepository(BaseRepository):
    """Order database operations."""

    async def create(
        self,
        customer_info: Dict[str, Any],
        items: List[Dict[str, Any]],
        total: int,
        payment_intent: Optional[str],
        status: str = "paid",
        editions_applied: bool = False,
    ) -> Order:
        """Insert a paid order. `total` and item prices are in cents."""
        data = {
            "customer_info": customer_info,
            "items": items,
            "total": total,
            "status": status,
            "payment_intent": payment_intent,
            "editions_applied": editions_applied,
        }
        result = await self.client.table("orders").insert(data).execute()
        return Order(**result.data[0])

    async def mark_editions_applied(self, order_id: str) -> None:
        """Flag the order once its sold quantities are counted against the editions."""
        await self.client.table("orders").update({"editions_applied": True}).eq("id", order_id).execute()

    async def get_by_payment_intent(self, payment_intent: str) -> Optional[Order]:
        if not payment_intent:
            return None
        result = await (
            self.client.table("orders")
            .select("*")
            .eq("payment_intent", payment_intent)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return Order(**result.data[0])
