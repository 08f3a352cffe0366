"""Catalog Models - Pydantic models for product records returned by the API."""
from decimal import Decimal
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from cartcore.services.money import to_decimal as _to_decimal


class ProductRecord(BaseModel):
    """
    Product as served by the catalog API.

    Accepts both the API's camelCase payload (``_id``, ``availableQuantity``,
    ``price: {amount, currency, unit}``, ``images: [...]``) and plain
    snake_case keyword arguments.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id", "productId", "product_id"))
    name: str = ""
    price: Decimal = Decimal("0")
    currency: Optional[str] = None
    unit: Optional[str] = None
    available_quantity: int = Field(
        default=0,
        validation_alias=AliasChoices("available_quantity", "availableQuantity"),
    )
    min_stock_quantity: int = Field(
        default=0,
        validation_alias=AliasChoices("min_stock_quantity", "minStockQuantity"),
    )
    category: Optional[str] = None
    sku: Optional[str] = None
    image_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("image_url", "imageUrl"),
    )

    @model_validator(mode="before")
    @classmethod
    def flatten_api_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        price = data.get("price")
        if isinstance(price, dict):
            data["price"] = price.get("amount")
            if price.get("currency") and not data.get("currency"):
                data["currency"] = price["currency"]
            if price.get("unit") and not data.get("unit"):
                data["unit"] = price["unit"]
        elif price is None:
            # Inventory listings only carry selling/cost prices
            data["price"] = data.get("sellingPrice") or data.get("costPrice") or 0

        if not data.get("image_url") and not data.get("imageUrl"):
            images = data.get("images") or []
            first = images[0] if images else None
            if isinstance(first, dict) and first.get("url"):
                data["image_url"] = first["url"]
        return data

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v is not None else v

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        return _to_decimal(v)

    @field_validator("available_quantity", "min_stock_quantity", mode="before")
    @classmethod
    def default_missing_quantity(cls, v):
        return 0 if v is None else v

    @property
    def in_stock(self) -> bool:
        return self.available_quantity > 0

    def to_snapshot(self) -> "InventorySnapshot":
        """Stock figures the cart reconciles against."""
        from cartcore.cart.models import InventorySnapshot

        return InventorySnapshot(
            product_id=self.id,
            available_quantity=self.available_quantity,
            min_stock_quantity=self.min_stock_quantity,
            price=self.price,
        )
