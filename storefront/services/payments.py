"""Payment Service - Stripe Checkout Integration

Talks to the Stripe REST API with httpx: hosted checkout sessions, session
lookups, and webhook signature verification.
"""

import hashlib
import hmac
import json
import time
from typing import Any, Iterable
from urllib.parse import quote, urlencode

import httpx

from storefront.config import get_settings
from storefront.errors import CheckoutError, WebhookSignatureError
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging

logger = get_logger(__name__)

# Stripe rejects webhook events older than this by default
WEBHOOK_TOLERANCE_SECONDS = 300


def _path_segment(value: str) -> str:
    # Session ids come from the query string; keep them inside one path segment
    return quote(value, safe="")


def encode_form(data: dict[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """
    Flatten nested dicts/lists into Stripe's bracketed form encoding.

    {"line_items": [{"quantity": 1}]} -> [("line_items[0][quantity]", "1")]
    """
    pairs: list[tuple[str, str]] = []
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        pairs.extend(_encode_value(name, value))
    return pairs


def _encode_value(name: str, value: Any) -> list[tuple[str, str]]:
    if value is None:
        return []
    if isinstance(value, dict):
        return encode_form(value, name)
    if isinstance(value, (list, tuple)):
        pairs: list[tuple[str, str]] = []
        for index, entry in enumerate(value):
            pairs.extend(_encode_value(f"{name}[{index}]", entry))
        return pairs
    if isinstance(value, bool):
        return [(name, "true" if value else "false")]
    return [(name, str(value))]


class PaymentService:
    """Stripe Checkout client."""

    def __init__(self, secret_key: str | None = None, webhook_secret: str | None = None, api_url: str | None = None):
        settings = get_settings()
        self.secret_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        self.api_url = (api_url or settings.stripe_api_url).rstrip("/")

        # HTTP client (lazy init)
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy creation of shared httpx client with timeouts."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(10.0, connect=5.0, read=10.0, write=10.0),
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            )
        return self._http_client

    def _headers(self) -> dict[str, str]:
        if not self.secret_key:
            raise CheckoutError("Stripe secret key (STRIPE_SECRET_KEY) is not configured")
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Accept": "application/json",
        }

    async def _request(
        self, method: str, path: str, *, data: list[tuple[str, str]] | None = None,
        params: list[tuple[str, str]] | None = None,
    ) -> dict[str, Any]:
        """Send a Stripe API request; any failure becomes a CheckoutError with Stripe's message."""
        headers = self._headers()
        content = None
        if data is not None:
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            content = urlencode(data)
        client = await self._get_http_client()
        try:
            response = await client.request(
                method, f"{self.api_url}{path}", headers=headers, content=content, params=params
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            try:
                error_detail = e.response.json().get("error", {}).get("message") or e.response.text[:200]
            except (ValueError, AttributeError):
                error_detail = e.response.text[:200]
            logger.error(
                "Stripe API error %s on %s: %s",
                e.response.status_code,
                path,
                sanitize_string_for_logging(error_detail, 200),
            )
            raise CheckoutError(error_detail) from e
        except httpx.RequestError as e:
            logger.exception("Stripe network error on %s", path)
            raise CheckoutError(f"Failed to connect to payment provider: {e!s}") from e
        except ValueError as e:
            raise CheckoutError("Payment provider returned an unreadable response") from e

        if not isinstance(payload, dict):
            raise CheckoutError("Payment provider returned an unexpected response")
        return payload

    # ==================== CHECKOUT SESSIONS ====================

    async def create_checkout_session(
        self,
        line_items: list[dict[str, Any]],
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
        metadata: dict[str, str] | None = None,
        shipping_countries: Iterable[str] = (),
    ) -> dict[str, Any]:
        """
        Create a hosted checkout session.

        Returns:
            Dict with session_id and url (the hosted payment page)
        """
        body: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": line_items,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "customer_email": customer_email,
            "metadata": metadata or None,
        }
        countries = list(shipping_countries)
        if countries:
            body["shipping_address_collection"] = {"allowed_countries": countries}

        logger.info("Stripe checkout session creation: %d line item(s)", len(line_items))
        data = await self._request("POST", "/checkout/sessions", data=encode_form(body))

        session_id = data.get("id")
        url = data.get("url")
        if not session_id or not url:
            logger.error("Stripe: id/url missing from session response. Keys: %s", list(data.keys()))
            raise CheckoutError("Checkout URL not found in payment provider response")

        logger.info("Stripe checkout session created: %s", sanitize_id_for_logging(session_id))
        return {"session_id": session_id, "url": url}

    async def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        """Fetch a checkout session (customer details, totals, payment status)."""
        return await self._request("GET", f"/checkout/sessions/{_path_segment(session_id)}")

    async def list_line_items(self, session_id: str) -> list[dict[str, Any]]:
        """Line items of a session with their products expanded (for metadata)."""
        data = await self._request(
            "GET",
            f"/checkout/sessions/{_path_segment(session_id)}/line_items",
            params=[("limit", "100"), ("expand[]", "data.price.product")],
        )
        return list(data.get("data") or [])

    # ==================== WEBHOOKS ====================

    def verify_webhook(self, payload: bytes, signature_header: str | None, tolerance: int = WEBHOOK_TOLERANCE_SECONDS) -> dict[str, Any]:
        """
        Verify a `Stripe-Signature` header and decode the event.

        Header format: t=<unix ts>,v1=<hex hmac>[,v1=...]. The signed string is
        "<t>.<raw body>" under HMAC-SHA256 with the endpoint secret.

        Raises:
            WebhookSignatureError: missing/invalid signature or stale timestamp
        """
        if not self.webhook_secret:
            logger.error("Stripe webhook: STRIPE_WEBHOOK_SECRET not configured")
            raise WebhookSignatureError("Webhook secret not configured")
        if not signature_header:
            raise WebhookSignatureError("Missing signature")

        timestamp = None
        signatures: list[str] = []
        for part in signature_header.split(","):
            key, _, value = part.strip().partition("=")
            if key == "t":
                timestamp = value
            elif key == "v1":
                signatures.append(value)

        if not timestamp or not timestamp.isdigit() or not signatures:
            raise WebhookSignatureError()

        signed_payload = timestamp.encode("utf-8") + b"." + payload
        expected = hmac.new(self.webhook_secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
        if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
            logger.error("Stripe webhook: signature mismatch")
            raise WebhookSignatureError()

        if tolerance and abs(time.time() - int(timestamp)) > tolerance:
            logger.error("Stripe webhook: timestamp outside tolerance")
            raise WebhookSignatureError("Timestamp outside the tolerance zone")

        try:
            event = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise WebhookSignatureError("Invalid payload") from e
        if not isinstance(event, dict):
            raise WebhookSignatureError("Invalid payload")
        return event

    async def aclose(self) -> None:
        """Close http client if created."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
