"""
Order Fulfillment

Records paid orders from Stripe webhook events and bumps the edition
counters of the sizes that were sold. Stripe retries deliveries, so an
event for a payment intent that already has a fully applied order is a
no-op.
"""

from typing import Any, Dict, List, Optional

from storefront.logging import get_logger, mask_email_for_logging, sanitize_id_for_logging
from storefront.services.database import Database
from storefront.services.models import Order
from storefront.services.payments import PaymentService

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def _payment_intent_id(session: Dict[str, Any]) -> Optional[str]:
    payment_intent = session.get("payment_intent")
    if isinstance(payment_intent, dict):
        return payment_intent.get("id")
    return payment_intent


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def order_items_from_line_items(line_items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Map Stripe line items (product expanded) back to artwork/size order items."""
    items = []
    for line in line_items:
        product = (line.get("price") or {}).get("product")
        metadata = product.get("metadata") if isinstance(product, dict) else None
        if not metadata or not metadata.get("artwork_id"):
            logger.warning("Line item without artwork metadata skipped: %s", line.get("id"))
            continue
        items.append(
            {
                "artwork_id": metadata["artwork_id"],
                "size": metadata.get("size", ""),
                "price": _to_int(line.get("amount_total")),
                "edition_number": _to_int(metadata.get("edition_number"), 1),
                "quantity": _to_int(line.get("quantity"), 1),
            }
        )
    return items


class OrderFulfillmentService:
    """Webhook-side order creation."""

    def __init__(self, db: Database, payments: PaymentService):
        self.db = db
        self.payments = payments

    async def handle_event(self, event: Dict[str, Any]) -> Optional[Order]:
        """Dispatch a verified Stripe event. Returns the order for completed checkouts."""
        event_type = event.get("type")
        session = (event.get("data") or {}).get("object") or {}

        if event_type != CHECKOUT_COMPLETED:
            logger.info("Stripe webhook: ignoring event type %s", event_type)
            return None

        if session.get("payment_status") != "paid":
            logger.info(
                "Stripe webhook: session %s completed with payment_status=%s, waiting",
                sanitize_id_for_logging(session.get("id")),
                session.get("payment_status"),
            )
            return None

        return await self.handle_checkout_completed(session)

    async def handle_checkout_completed(self, session: Dict[str, Any]) -> Order:
        """
        Record the order, then count its quantities against the editions.

        The order row is written with `editions_applied=False` and flagged once
        the counters are updated, so a delivery that died in between is
        finished by Stripe's retry instead of being skipped as a duplicate.
        """
        session_id = session.get("id", "")
        payment_intent = _payment_intent_id(session)

        existing = await self.db.orders.get_by_payment_intent(payment_intent) if payment_intent else None
        if existing:
            if existing.editions_applied:
                logger.info("Order %s already recorded for this payment, skipping", sanitize_id_for_logging(existing.id))
                return existing
            logger.warning(
                "Order %s recorded without edition counts, applying them now", sanitize_id_for_logging(existing.id)
            )
            await self._apply_editions(existing.id, [item.model_dump() for item in existing.items])
            return existing.model_copy(update={"editions_applied": True})

        line_items = await self.payments.list_line_items(session_id)
        items = order_items_from_line_items(line_items)

        details = session.get("customer_details") or {}
        customer_info = {
            "name": (session.get("metadata") or {}).get("customer_name") or details.get("name"),
            "email": details.get("email") or session.get("customer_email"),
            "address": details.get("address"),
        }

        order = await self.db.orders.create(
            customer_info=customer_info,
            items=items,
            total=_to_int(session.get("amount_total")),
            payment_intent=payment_intent,
            status="paid",
            editions_applied=False,
        )
        logger.info(
            "Order %s created from checkout session %s for %s (%d item(s))",
            sanitize_id_for_logging(order.id),
            sanitize_id_for_logging(session_id),
            mask_email_for_logging(customer_info["email"]),
            len(items),
        )

        await self._apply_editions(order.id, items)
        return order.model_copy(update={"editions_applied": True})

    async def _apply_editions(self, order_id: str, items: List[Dict[str, Any]]) -> None:
        await self._increment_editions(items)
        await self.db.orders.mark_editions_applied(order_id)

    async def _increment_editions(self, items: List[Dict[str, Any]]) -> None:
        """Add sold quantities to each size's editions_sold. One artwork failing does not stop the rest."""
        sold: Dict[str, Dict[str, int]] = {}
        for item in items:
            sizes = sold.setdefault(item["artwork_id"], {})
            sizes[item["size"]] = sizes.get(item["size"], 0) + item["quantity"]

        for artwork_id, quantities in sold.items():
            try:
                artwork = await self.db.artworks.get_by_id(artwork_id)
                if artwork is None:
                    logger.warning("Edition update: artwork %s not found", sanitize_id_for_logging(artwork_id))
                    continue
                sizes = []
                for size in artwork.sizes:
                    data = size.model_dump()
                    data["editions_sold"] = size.editions_sold + quantities.get(size.size, 0)
                    sizes.append(data)
                await self.db.artworks.update_sizes(artwork_id, sizes)
            except Exception:
                logger.exception("Edition update failed for artwork %s", sanitize_id_for_logging(artwork_id))
