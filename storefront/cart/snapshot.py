"""
Cart snapshot encoding.

Stored format (version 1):

    {"version": 1, "items": [{"artworkId": "a1", "size": "M",
      "unitPriceCents": 5000, "quantity": 2, "title": "X",
      "imageUrl": "/x.jpg", "sizeDisplay": "Medium"}]}

A bare JSON array is accepted as version 0 (snapshots written before the
version tag existed). Anything that does not parse is reported as corrupt.
"""
import json
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from storefront.logging import get_logger
from .models import CartLineItem

logger = get_logger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotItem(BaseModel):
    """Schema of one persisted line."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    artwork_id: str = Field(alias="artworkId", min_length=1)
    size: str = Field(min_length=1)
    unit_price_cents: int = Field(alias="unitPriceCents", ge=0, strict=True)
    quantity: int = Field(ge=1, strict=True)
    title: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    size_display: Optional[str] = Field(default=None, alias="sizeDisplay")


class CartSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: int = SNAPSHOT_VERSION
    items: List[SnapshotItem] = []


class CorruptSnapshotError(ValueError):
    """Raised when a stored snapshot cannot be decoded."""


def encode_snapshot(items: Tuple[CartLineItem, ...]) -> str:
    """Serialize cart items (never the drawer flag) to the storage format."""
    return json.dumps(
        {"version": SNAPSHOT_VERSION, "items": [item.to_dict() for item in items]},
        separators=(",", ":"),
        ensure_ascii=False,
    )


def decode_snapshot(raw: str | bytes) -> Tuple[CartLineItem, ...]:
    """
    Parse a stored snapshot into cart items.

    Lines sharing an (artwork_id, size) key are merged by summing quantities
    so the uniqueness invariant holds even for hand-edited snapshots.

    Raises:
        CorruptSnapshotError: not JSON, wrong shape, or unknown version
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise CorruptSnapshotError(f"Snapshot is not valid JSON: {e}") from e

    if isinstance(data, list):
        data = {"version": 0, "items": data}

    try:
        snapshot = CartSnapshot.model_validate(data)
    except ValidationError as e:
        raise CorruptSnapshotError(f"Snapshot does not match schema: {e.error_count()} error(s)") from e

    if snapshot.version not in (0, SNAPSHOT_VERSION):
        raise CorruptSnapshotError(f"Unsupported snapshot version {snapshot.version}")

    merged: dict[Tuple[str, str], CartLineItem] = {}
    for entry in snapshot.items:
        key = (entry.artwork_id, entry.size)
        existing = merged.get(key)
        if existing:
            merged[key] = existing.with_quantity(existing.quantity + entry.quantity)
            continue
        merged[key] = CartLineItem(
            artwork_id=entry.artwork_id,
            size=entry.size,
            unit_price_cents=entry.unit_price_cents,
            quantity=entry.quantity,
            title=entry.title,
            image_url=entry.image_url,
            size_display=entry.size_display,
        )
    return tuple(merged.values())
