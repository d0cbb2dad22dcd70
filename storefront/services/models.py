"""Database Models - Pydantic models for catalog and order rows."""
import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from storefront.services.money import parse_price_cents


class ArtworkImage(BaseModel):
    url: str
    alt: str = ""
    type: str = "main"  # main | hover | detail


class ArtworkSize(BaseModel):
    """One purchasable print size of an artwork. `price` is in cents."""
    model_config = ConfigDict(extra="ignore")

    size: str
    price: int
    edition_limit: int = 0
    editions_sold: int = 0
    size_display: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_cents(cls, v):
        return parse_price_cents(v)

    @property
    def editions_remaining(self) -> int:
        return max(0, self.edition_limit - self.editions_sold)

    @property
    def is_sold_out(self) -> bool:
        return self.editions_sold >= self.edition_limit


class Artwork(BaseModel):
    """Artwork model."""
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    description: str = ""
    year: Optional[int] = None
    medium: Optional[str] = None
    collection_id: Optional[str] = None
    featured: bool = False
    images: list[ArtworkImage] = []
    sizes: list[ArtworkSize] = []
    created_at: Optional[datetime] = None

    @field_validator("images", mode="before")
    @classmethod
    def normalize_images(cls, v):
        """Accept the shapes older admin screens saved: str, JSON str, list of str, {main, hover} dict."""
        if v is None or v == "":
            return []
        if isinstance(v, str):
            stripped = v.strip()
            if stripped.startswith(("[", "{")):
                try:
                    return cls.normalize_images(json.loads(stripped))
                except json.JSONDecodeError:
                    pass
            return [{"url": v, "alt": "", "type": "main"}]
        if isinstance(v, dict):
            return [
                {"url": url, "alt": "", "type": kind if kind in ("main", "hover") else "detail"}
                for kind, url in v.items()
                if url
            ]
        if isinstance(v, list):
            images: list[Any] = []
            for index, entry in enumerate(v):
                if isinstance(entry, str):
                    images.append({"url": entry, "alt": "", "type": "main" if index == 0 else "detail"})
                else:
                    images.append(entry)
            return images
        return v

    @field_validator("sizes", mode="before")
    @classmethod
    def normalize_sizes(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return json.loads(v)
        return v

    @property
    def main_image_url(self) -> Optional[str]:
        for image in self.images:
            if image.type == "main":
                return image.url
        return self.images[0].url if self.images else None

    def get_size(self, size: str) -> Optional[ArtworkSize]:
        for info in self.sizes:
            if info.size == size:
                return info
        return None

    @property
    def min_price_cents(self) -> Optional[int]:
        prices = [s.price for s in self.sizes]
        return min(prices) if prices else None


class Collection(BaseModel):
    """Collection model."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str = ""
    featured: bool = False
    cover_image: Optional[str] = None
    order: int = 0
    created_at: Optional[datetime] = None


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    artwork_id: str
    size: str
    price: int  # cents, line total as charged
    edition_number: int
    quantity: int = 1


class Order(BaseModel):
    """Order model. `total` is in cents."""
    model_config = ConfigDict(extra="ignore")

    id: str
    customer_info: dict = {}
    items: list[OrderItem] = []
    total: int = 0
    status: str = "pending"
    payment_intent: Optional[str] = None
    # Rows written before the column existed had their editions counted inline
    editions_applied: bool = True
    created_at: Optional[datetime] = None
