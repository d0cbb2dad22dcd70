"""
API Pydantic Models

Request bodies for the cart and checkout endpoints. Field names follow the
storefront's camelCase JSON; snake_case is accepted as well.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ==================== CART MODELS ====================

class AddCartItemRequest(_CamelModel):
    artwork_id: str = Field(alias="artworkId", min_length=1)
    size: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(_CamelModel):
    artwork_id: str = Field(alias="artworkId", min_length=1)
    size: str = Field(min_length=1)
    quantity: int  # 0 or less removes the line


class CartItemKey(_CamelModel):
    artwork_id: str = Field(alias="artworkId", min_length=1)
    size: str = Field(min_length=1)


# ==================== CHECKOUT MODELS ====================

class CustomerInfo(BaseModel):
    name: str = ""
    email: str = Field(min_length=3)
    address: Optional[dict] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class CheckoutRequest(_CamelModel):
    customer_info: CustomerInfo = Field(alias="customerInfo")
