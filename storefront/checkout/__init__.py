"""Checkout package: catalog validation and hosted checkout sessions."""
from .service import CheckoutService
from .validation import CartValidationResult, IssueType, LineIssue, validate_cart

__all__ = [
    "CartValidationResult",
    "CheckoutService",
    "IssueType",
    "LineIssue",
    "validate_cart",
]
