"""Shopping cart models"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CartLine(BaseModel):
    product_id: str
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)


class Cart(BaseModel):
    """One cart per user, at most one line per product"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: str
    items: List[CartLine] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.items)

    @property
    def total_price(self) -> float:
        return round(sum(line.quantity * line.price for line in self.items), 2)

    def find_line(self, product_id: str) -> Optional[CartLine]:
        for line in self.items:
            if line.product_id == product_id:
                return line
        return None

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "items": [
                {"productId": line.product_id, "quantity": line.quantity, "price": line.price}
                for line in self.items
            ],
            "totalItems": self.total_items,
            "totalPrice": self.total_price,
            "updatedAt": self.updated_at,
        }
