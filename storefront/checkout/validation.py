"""
Checkout Validation

Compares cart lines with the live catalog before a payment session is
created. Problems are reported per line; nothing in the cart is changed here,
the customer decides whether to remove a line or accept the new price.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from storefront.cart.models import CartLineItem
from storefront.errors import (
    ERROR_ARTWORK_NOT_FOUND,
    ERROR_INSUFFICIENT_EDITIONS,
    ERROR_PRICE_CHANGED,
    ERROR_SIZE_UNAVAILABLE,
    ERROR_SOLD_OUT,
)
from storefront.logging import get_logger
from storefront.services.catalog import CatalogService
from storefront.services.models import Artwork, ArtworkSize

logger = get_logger(__name__)


class IssueType(str, Enum):
    ARTWORK_NOT_FOUND = "artwork_not_found"
    SIZE_UNAVAILABLE = "size_unavailable"
    SOLD_OUT = "sold_out"
    INSUFFICIENT_EDITIONS = "insufficient_editions"
    PRICE_CHANGED = "price_changed"


ISSUE_MESSAGES = {
    IssueType.ARTWORK_NOT_FOUND: ERROR_ARTWORK_NOT_FOUND,
    IssueType.SIZE_UNAVAILABLE: ERROR_SIZE_UNAVAILABLE,
    IssueType.SOLD_OUT: ERROR_SOLD_OUT,
    IssueType.INSUFFICIENT_EDITIONS: ERROR_INSUFFICIENT_EDITIONS,
    IssueType.PRICE_CHANGED: ERROR_PRICE_CHANGED,
}


@dataclass
class LineIssue:
    """A flagged cart line."""

    artwork_id: str
    size: str
    issue: IssueType
    message: str
    cart_price_cents: Optional[int] = None
    current_price_cents: Optional[int] = None
    requested_quantity: Optional[int] = None
    editions_remaining: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "artworkId": self.artwork_id,
            "size": self.size,
            "issue": self.issue.value,
            "message": self.message,
            "cartPriceCents": self.cart_price_cents,
            "currentPriceCents": self.current_price_cents,
            "requestedQuantity": self.requested_quantity,
            "editionsRemaining": self.editions_remaining,
        }


@dataclass
class ValidatedLine:
    """A cart line together with the catalog data it was checked against."""

    item: CartLineItem
    artwork: Artwork
    size_info: ArtworkSize


@dataclass
class CartValidationResult:
    lines: List[ValidatedLine] = field(default_factory=list)
    issues: List[LineIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def issues_for(self, artwork_id: str, size: str) -> List[LineIssue]:
        return [i for i in self.issues if i.artwork_id == artwork_id and i.size == size]


def _issue(item: CartLineItem, issue: IssueType, **extra) -> LineIssue:
    return LineIssue(artwork_id=item.artwork_id, size=item.size, issue=issue, message=ISSUE_MESSAGES[issue], **extra)


def check_line(item: CartLineItem, artwork: Optional[Artwork]) -> tuple[Optional[ArtworkSize], List[LineIssue]]:
    """Check one line against its artwork. Returns the size info (if any) and the issues found."""
    if artwork is None:
        return None, [_issue(item, IssueType.ARTWORK_NOT_FOUND)]

    size_info = artwork.get_size(item.size)
    if size_info is None:
        return None, [_issue(item, IssueType.SIZE_UNAVAILABLE)]

    issues: List[LineIssue] = []
    remaining = size_info.editions_remaining
    if size_info.is_sold_out:
        issues.append(_issue(item, IssueType.SOLD_OUT, requested_quantity=item.quantity, editions_remaining=0))
    elif item.quantity > remaining:
        issues.append(
            _issue(
                item,
                IssueType.INSUFFICIENT_EDITIONS,
                requested_quantity=item.quantity,
                editions_remaining=remaining,
            )
        )

    if size_info.price != item.unit_price_cents:
        issues.append(
            _issue(
                item,
                IssueType.PRICE_CHANGED,
                cart_price_cents=item.unit_price_cents,
                current_price_cents=size_info.price,
            )
        )
    return size_info, issues


async def validate_cart(items: Sequence[CartLineItem], catalog: CatalogService) -> CartValidationResult:
    """Validate every cart line against the catalog in one batch lookup."""
    artworks: Dict[str, Artwork] = await catalog.get_artworks([item.artwork_id for item in items])

    result = CartValidationResult()
    for item in items:
        artwork = artworks.get(item.artwork_id)
        size_info, issues = check_line(item, artwork)
        result.issues.extend(issues)
        if artwork is not None and size_info is not None:
            result.lines.append(ValidatedLine(item=item, artwork=artwork, size_info=size_info))

    if result.issues:
        logger.info(
            "Cart validation flagged %d issue(s): %s",
            len(result.issues),
            ", ".join(sorted({i.issue.value for i in result.issues})),
        )
    return result
