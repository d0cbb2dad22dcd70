"""
Checkout Service

Turns the current cart into a Stripe hosted checkout session and reports the
outcome when the customer comes back. The cart is cleared only after the
payment is confirmed.
"""

import asyncio
from typing import Any, Dict, List, Optional

from storefront.cart.service import CartStore
from storefront.checkout.validation import CartValidationResult, validate_cart
from storefront.config import Settings, get_settings
from storefront.errors import ERROR_SESSION_ID_REQUIRED, CartValidationError, EmptyCartError
from storefront.logging import get_logger, mask_email_for_logging, sanitize_id_for_logging
from storefront.orders.fulfillment import OrderFulfillmentService
from storefront.services.catalog import CatalogService
from storefront.services.database import Database
from storefront.services.models import Order
from storefront.services.payments import PaymentService

logger = get_logger(__name__)

PAID_STATUSES = {"paid"}


class CheckoutService:
    """Validation, session creation and status lookups for the hosted checkout."""

    def __init__(self, db: Database, payments: PaymentService, settings: Optional[Settings] = None):
        self.db = db
        self.catalog = CatalogService(db)
        self.payments = payments
        self.fulfillment = OrderFulfillmentService(db, payments)
        self.settings = settings or get_settings()

    def _absolute_url(self, url: str) -> str:
        if not url or url.startswith(("http://", "https://")):
            return url
        return f"{self.settings.app_url}/{url.lstrip('/')}"

    def build_line_items(self, validation: CartValidationResult) -> List[Dict[str, Any]]:
        """Stripe `line_items` for validated cart lines."""
        line_items = []
        for line in validation.lines:
            item, artwork, size_info = line.item, line.artwork, line.size_info
            edition_number = size_info.editions_sold + 1
            image_url = self._absolute_url(item.image_url or artwork.main_image_url or "")
            product_data: Dict[str, Any] = {
                "name": f"{artwork.title} - {item.size_display or item.size}",
                "description": f"Limited Edition Print ({edition_number}/{size_info.edition_limit})",
                "metadata": {
                    "artwork_id": item.artwork_id,
                    "size": item.size,
                    "edition_number": edition_number,
                },
            }
            if image_url:
                product_data["images"] = [image_url]
            line_items.append(
                {
                    "price_data": {
                        "currency": self.settings.currency,
                        "product_data": product_data,
                        "unit_amount": size_info.price,
                    },
                    "quantity": item.quantity,
                }
            )
        return line_items

    async def validate(self, store: CartStore) -> CartValidationResult:
        return await validate_cart(store.items, self.catalog)

    async def start_checkout(self, store: CartStore, customer_email: str, customer_name: str = "") -> Dict[str, str]:
        """
        Validate the cart and create a hosted checkout session.

        Returns:
            Dict with session_id and url to redirect the customer to

        Raises:
            EmptyCartError: nothing to buy
            CartValidationError: lines disagree with the catalog (cart untouched)
            CheckoutError: Stripe refused or was unreachable (cart untouched)
        """
        if not store.items:
            raise EmptyCartError()

        validation = await self.validate(store)
        if not validation.ok:
            raise CartValidationError(validation.issues)

        session = await self.payments.create_checkout_session(
            line_items=self.build_line_items(validation),
            success_url=f"{self.settings.app_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.settings.app_url}/checkout",
            customer_email=customer_email,
            metadata={"customer_name": customer_name} if customer_name else None,
            shipping_countries=self.settings.shipping_countries,
        )
        logger.info(
            "Checkout started for cart session %s by %s: stripe session %s, %d cents",
            sanitize_id_for_logging(store.session_id),
            mask_email_for_logging(customer_email),
            sanitize_id_for_logging(session["session_id"]),
            store.total_cents,
        )
        return session

    async def get_order_status(self, session_id: str) -> Dict[str, Any]:
        """Order summary for the success page, from Stripe plus the recorded order (if any)."""
        if not session_id:
            raise ValueError(ERROR_SESSION_ID_REQUIRED)

        session = await self.payments.retrieve_checkout_session(session_id)
        payment_intent = session.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        order = await self.db.orders.get_by_payment_intent(payment_intent) if payment_intent else None
        customer = session.get("customer_details") or {}

        return {
            "id": order.id if order else session_id,
            "customer": {
                "name": customer.get("name") or (session.get("metadata") or {}).get("customer_name"),
                "email": customer.get("email"),
            },
            "total": session.get("amount_total"),
            "status": order.status if order else session.get("payment_status"),
            "items": [i.model_dump() for i in order.items] if order else [],
            "created_at": order.created_at.isoformat() if order and order.created_at else None,
        }

    async def confirm_checkout(self, session_id: str, store: CartStore) -> Dict[str, Any]:
        """Look up the session and clear the cart if (and only if) it is paid."""
        status = await self.get_order_status(session_id)
        paid = status["status"] in PAID_STATUSES
        if paid:
            await asyncio.to_thread(store.clear)
            logger.info(
                "Checkout confirmed for cart session %s, cart cleared",
                sanitize_id_for_logging(store.session_id),
            )
        return {**status, "cart_cleared": paid}

    async def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Optional[Order]:
        """
        Verify a Stripe webhook delivery and fulfil completed checkouts.

        Raises:
            WebhookSignatureError: signature missing, wrong, or stale
        """
        event = self.payments.verify_webhook(payload, signature)
        logger.info("Stripe webhook received: %s", event.get("type"))
        return await self.fulfillment.handle_event(event)
