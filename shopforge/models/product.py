"""Catalog product model"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Inventory(BaseModel):
    quantity: int = Field(default=0, ge=0)
    track_quantity: bool = True
    low_stock_threshold: int = 10


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    description: str = ""
    price: float = Field(ge=0)
    sku: str
    category: Optional[str] = None
    brand: Optional[str] = None
    inventory: Inventory = Field(default_factory=Inventory)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_low_stock(self) -> bool:
        return self.inventory.track_quantity and self.inventory.quantity <= self.inventory.low_stock_threshold

    def has_stock(self, quantity: int) -> bool:
        return not self.inventory.track_quantity or self.inventory.quantity >= quantity

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "sku": self.sku,
            "category": self.category,
            "brand": self.brand,
            "inventory": {
                "quantity": self.inventory.quantity,
                "trackQuantity": self.inventory.track_quantity,
                "lowStockThreshold": self.inventory.low_stock_threshold,
            },
            "isLowStock": self.is_low_stock,
            "isActive": self.is_active,
        }
