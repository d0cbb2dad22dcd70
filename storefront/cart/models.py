"""Cart models: line items, cart state and the totals derived from them."""
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple


@dataclass(frozen=True)
class CartLineItem:
    """One (artwork, size) selection with a quantity."""
    artwork_id: str
    size: str
    unit_price_cents: int
    quantity: int
    title: str = ""
    image_url: str = ""
    size_display: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        """Identity of the line inside a cart."""
        return (self.artwork_id, self.size)

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    def with_quantity(self, quantity: int) -> "CartLineItem":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        """Wire/storage representation (camelCase, as stored in the browser)."""
        data = {
            "artworkId": self.artwork_id,
            "size": self.size,
            "unitPriceCents": self.unit_price_cents,
            "quantity": self.quantity,
            "title": self.title,
            "imageUrl": self.image_url,
        }
        if self.size_display is not None:
            data["sizeDisplay"] = self.size_display
        return data


def total_items(items: Tuple[CartLineItem, ...]) -> int:
    """Number of units across all lines."""
    return sum(item.quantity for item in items)


def total_cents(items: Tuple[CartLineItem, ...]) -> int:
    """Sum of unit price times quantity across all lines."""
    return sum(item.line_total_cents for item in items)


@dataclass(frozen=True)
class CartState:
    """
    Immutable snapshot of a cart.

    The store replaces the whole object on every mutation, so every reader
    holding the current state sees the same items and totals.
    """
    items: Tuple[CartLineItem, ...] = field(default_factory=tuple)
    is_open: bool = False

    @property
    def total_items(self) -> int:
        return total_items(self.items)

    @property
    def total_cents(self) -> int:
        return total_cents(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, artwork_id: str, size: str) -> Optional[CartLineItem]:
        for item in self.items:
            if item.artwork_id == artwork_id and item.size == size:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "isOpen": self.is_open,
            "totalItems": self.total_items,
            "totalCents": self.total_cents,
        }
