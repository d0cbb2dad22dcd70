"""
Webhooks Router

Stripe webhook. The signature is verified against the raw body before
anything is parsed.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront.checkout.service import CheckoutService
from storefront.errors import ERROR_WEBHOOK_FAILED, WebhookSignatureError
from storefront.logging import get_logger
from .deps import get_checkout_service

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post("/api/webhooks/stripe")
async def stripe_webhook(request: Request, checkout: CheckoutService = Depends(get_checkout_service)):
    raw_body = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        order = await checkout.handle_webhook(raw_body, signature)
    except WebhookSignatureError as e:
        logger.warning("Stripe webhook rejected: %s", e)
        return JSONResponse({"error": str(e)}, status_code=400)
    except Exception:
        logger.exception("Stripe webhook handler failed")
        return JSONResponse({"error": ERROR_WEBHOOK_FAILED}, status_code=500)

    return {"received": True, "order_id": order.id if order else None}
