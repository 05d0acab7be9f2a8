"""User data models for authentication"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: str = "India"


class User(BaseModel):
    """Persisted user record keyed by normalized phone"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    phone: str
    name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password_hash: Optional[str] = None
    role: str = Field(default="user", pattern="^(admin|user)$")
    is_active: bool = True
    is_verified: bool = False
    otp_code: Optional[str] = None
    otp_expires: Optional[datetime] = None
    last_login: Optional[datetime] = None
    address: Address = Field(default_factory=Address)
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_registered(self) -> bool:
        return bool(self.name and self.email)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_public(self) -> dict:
        """Serializable view without OTP, password or reset secrets"""
        return {
            "id": self.id,
            "phone": self.phone,
            "name": self.name,
            "email": self.email,
            "userName": self.username,
            "role": self.role,
            "isActive": self.is_active,
            "isVerified": self.is_verified,
            "isRegistered": self.is_registered,
            "lastLogin": self.last_login,
            "address": {
                "street": self.address.street,
                "city": self.address.city,
                "state": self.address.state,
                "zipCode": self.address.zip_code,
                "country": self.address.country,
            },
            "createdAt": self.created_at,
        }
