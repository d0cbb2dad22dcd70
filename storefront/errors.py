"""
Common Error Constants and Exceptions

Centralized error messages to avoid string duplication, plus the small
exception hierarchy raised by the cart and checkout layers.
"""

# Catalog errors
ERROR_ARTWORK_NOT_FOUND = "Artwork not found"
ERROR_COLLECTION_NOT_FOUND = "Collection not found"
ERROR_SIZE_UNAVAILABLE = "Size not available for this artwork"
ERROR_SOLD_OUT = "No more editions available"
ERROR_INSUFFICIENT_EDITIONS = "Not enough editions available"
ERROR_PRICE_CHANGED = "Price has changed since the item was added"

# Cart errors
ERROR_CART_EMPTY = "Cart is empty"
ERROR_CART_UNAVAILABLE = "Cart storage unavailable"
ERROR_CART_NEEDS_REVIEW = "Some items in your cart need attention before checkout"

# Checkout errors
ERROR_SESSION_ID_REQUIRED = "Session ID is required"
ERROR_SESSION_LOOKUP_FAILED = "Failed to retrieve session"
ERROR_INVALID_SIGNATURE = "Invalid signature"
ERROR_WEBHOOK_FAILED = "Webhook handler failed"


class StorefrontError(Exception):
    """Base class for storefront errors."""


class CartPersistenceError(StorefrontError):
    """Cart snapshot could not be written; in-memory state was left untouched."""


class EmptyCartError(StorefrontError):
    def __init__(self, message: str = ERROR_CART_EMPTY):
        super().__init__(message)


class CartValidationError(StorefrontError):
    """Cart lines disagree with the catalog (sold out, price changed, ...)."""

    def __init__(self, issues: list, message: str = ERROR_CART_NEEDS_REVIEW):
        super().__init__(message)
        self.issues = issues


class CheckoutError(StorefrontError):
    """Payment provider failure. The message is shown to the customer as-is."""


class WebhookSignatureError(StorefrontError):
    def __init__(self, message: str = ERROR_INVALID_SIGNATURE):
        super().__init__(message)
