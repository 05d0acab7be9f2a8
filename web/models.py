"""API request models; JSON bodies accept camelCase or snake_case keys"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from shopforge.auth.passwords import MIN_PASSWORD_LENGTH
from shopforge.models.order import OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendOtpRequest(CamelModel):
    phone: str = ""


class VerifyOtpRequest(CamelModel):
    phone: str = ""
    otp: Union[str, int] = ""


class RegisterDetailsRequest(CamelModel):
    """Profile completion after phone verification"""
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    user_name: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: str = "India"


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    reset_token: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class AddCartItemRequest(CamelModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(CamelModel):
    quantity: int


class OrderItemRequest(CamelModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class ShippingAddressRequest(CamelModel):
    address: str
    city: str
    postal_code: str
    country: str = "India"


class CreateOrderRequest(CamelModel):
    """Line prices are taken from the catalog, not from the client"""
    order_items: List[OrderItemRequest] = Field(default_factory=list)
    shipping_address: ShippingAddressRequest
    payment_method: str
    tax_price: float = Field(default=0.0, ge=0)
    shipping_price: float = Field(default=0.0, ge=0)


class PaymentResultRequest(CamelModel):
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class UpdateOrderStatusRequest(CamelModel):
    status: OrderStatus
    tracking_number: Optional[str] = None


class CreateProductRequest(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    sku: str = Field(..., min_length=1)
    category: Optional[str] = None
    brand: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    track_quantity: bool = True
    low_stock_threshold: int = Field(default=10, ge=0)


class AdminUpdateUserRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[str] = Field(default=None, pattern="^(admin|user)$")
