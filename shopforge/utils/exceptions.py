"""Custom exceptions for the ShopForge backend"""

from typing import Optional


class ShopForgeError(Exception):
    """Base exception for ShopForge"""

    status_code: int = 500

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


class InvalidInputError(ShopForgeError):
    """Malformed or missing request input"""
    status_code = 400


class RateLimitError(ShopForgeError):
    """Action refused by a cooldown"""
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(message)


class NotFoundError(ShopForgeError):
    status_code = 404


class OtpExpiredError(ShopForgeError):
    """OTP exists but is past its expiry"""
    status_code = 400


class OtpMismatchError(ShopForgeError):
    """Submitted OTP does not match the pending one"""
    status_code = 400


class AlreadyRegisteredError(ShopForgeError):
    status_code = 400


class InsufficientStockError(ShopForgeError):
    """Requested quantity exceeds available stock"""
    status_code = 400

    def __init__(self, message: str, product_id: Optional[str] = None):
        self.product_id = product_id
        super().__init__(message)


class EmptyOrderError(ShopForgeError):
    status_code = 400


class UnauthorizedError(ShopForgeError):
    status_code = 401


class ForbiddenError(ShopForgeError):
    status_code = 403


class ConflictError(ShopForgeError):
    """Unique field already taken by another record"""
    status_code = 409


class ConfigError(ShopForgeError):
    """Configuration error"""
    status_code = 500


class DatabaseError(ShopForgeError):
    """Database unreachable or write failed"""
    status_code = 503
