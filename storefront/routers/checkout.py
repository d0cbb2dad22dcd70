"""
Checkout Router

Cart validation, hosted checkout creation, and the success-page lookups.
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from storefront.cart.service import CartStore
from storefront.checkout.service import CheckoutService
from storefront.errors import (
    ERROR_SESSION_LOOKUP_FAILED,
    CartPersistenceError,
    CartValidationError,
    CheckoutError,
    EmptyCartError,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from .deps import get_cart_store, get_checkout_service
from .models import CheckoutRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])


@router.post("/cart/validate")
async def validate_cart(
    store: CartStore = Depends(get_cart_store),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Check the cart against the catalog without starting a payment."""
    result = await checkout.validate(store)
    return {"ok": result.ok, "issues": [issue.to_dict() for issue in result.issues]}


@router.post("/checkout")
async def create_checkout(
    request: CheckoutRequest,
    store: CartStore = Depends(get_cart_store),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    customer = request.customer_info
    try:
        session = await checkout.start_checkout(store, customer_email=customer.email, customer_name=customer.name)
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CartValidationError as e:
        return JSONResponse(
            status_code=409,
            content={"error": str(e), "issues": [issue.to_dict() for issue in e.issues]},
        )
    except CheckoutError as e:
        # Stripe's message goes to the customer unchanged
        raise HTTPException(status_code=400, detail=str(e))

    return {"sessionId": session["session_id"], "url": session["url"]}


@router.get("/checkout/session")
async def get_checkout_session(session_id: str = "", checkout: CheckoutService = Depends(get_checkout_service)):
    try:
        return await checkout.get_order_status(session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CheckoutError as e:
        logger.error("Session lookup failed for %s: %s", sanitize_id_for_logging(session_id), e)
        raise HTTPException(status_code=500, detail=ERROR_SESSION_LOOKUP_FAILED)


@router.post("/checkout/confirm")
async def confirm_checkout(
    session_id: str = "",
    store: CartStore = Depends(get_cart_store),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Success-page callback: clears the cart once the payment is confirmed."""
    try:
        return await checkout.confirm_checkout(session_id, store)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CheckoutError as e:
        logger.error("Checkout confirmation failed for %s: %s", sanitize_id_for_logging(session_id), e)
        raise HTTPException(status_code=500, detail=ERROR_SESSION_LOOKUP_FAILED)
    except CartPersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
