"""Order models"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    """Order fulfilment status"""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderLine(BaseModel):
    product_id: str
    name: str
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)


class ShippingAddress(BaseModel):
    address: str
    city: str
    postal_code: str
    country: str = "India"


class PaymentResult(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class Order(BaseModel):
    """Order snapshot; lines and prices are fixed at creation"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: str
    items: List[OrderLine]
    shipping_address: ShippingAddress
    payment_method: str
    items_price: float
    tax_price: float = 0.0
    shipping_price: float = 0.0
    total_price: float
    status: OrderStatus = OrderStatus.PENDING
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    payment_result: Optional[PaymentResult] = None
    is_delivered: bool = False
    delivered_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_public(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "orderItems": [
                {
                    "productId": line.product_id,
                    "name": line.name,
                    "quantity": line.quantity,
                    "price": line.price,
                }
                for line in self.items
            ],
            "shippingAddress": {
                "address": self.shipping_address.address,
                "city": self.shipping_address.city,
                "postalCode": self.shipping_address.postal_code,
                "country": self.shipping_address.country,
            },
            "paymentMethod": self.payment_method,
            "itemsPrice": self.items_price,
            "taxPrice": self.tax_price,
            "shippingPrice": self.shipping_price,
            "totalPrice": self.total_price,
            "status": self.status.value,
            "isPaid": self.is_paid,
            "paidAt": self.paid_at,
            "paymentResult": self.payment_result.model_dump() if self.payment_result else None,
            "isDelivered": self.is_delivered,
            "deliveredAt": self.delivered_at,
            "trackingNumber": self.tracking_number,
            "createdAt": self.created_at,
        }
