"""
Phone OTP authentication.

Flow: send_otp issues a 6-digit code (subject to a per-phone cooldown),
verify_otp consumes it once and returns a session token, and
complete_registration fills in the profile of a verified partial account.
"""

import hmac
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from pymongo.errors import PyMongoError

from ..models.user import Address
from ..safety.cooldown_manager import CooldownManager
from ..services.user_store import UserStore
from ..utils.exceptions import (
    AlreadyRegisteredError,
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    OtpExpiredError,
    OtpMismatchError,
    RateLimitError,
)
from ..utils.logger import get_logger
from .identifiers import normalize_phone, validate_otp_format
from .passwords import hash_password
from .tokens import SessionIssuer

logger = get_logger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp() -> str:
    return str(secrets.randbelow(OTP_MAX - OTP_MIN + 1) + OTP_MIN)


class LogOtpSender:
    """Delivers codes to the application log instead of an SMS gateway"""

    def __call__(self, phone: str, code: str) -> None:
        logger.info("OTP issued", phone=phone, otp=code)


class OtpAuthenticator:
    def __init__(
        self,
        users: UserStore,
        sessions: SessionIssuer,
        cooldown: CooldownManager,
        otp_ttl_minutes: int = 10,
        expose_otp: bool = False,
        country_code: str = "91",
        sender: Optional[Callable[[str, str], None]] = None,
        now: Callable[[], datetime] = datetime.utcnow,
        code_factory: Callable[[], str] = generate_otp,
    ):
        self.users = users
        self.sessions = sessions
        self.cooldown = cooldown
        self.otp_ttl = timedelta(minutes=otp_ttl_minutes)
        self.expose_otp = expose_otp
        self.country_code = country_code
        self.sender = sender or LogOtpSender()
        self.now = now
        self.code_factory = code_factory

    def send_otp(self, identifier: str) -> Dict[str, Any]:
        """
        Issue a fresh OTP for a phone, creating a partial user on first contact.

        Raises:
            InvalidInputError: missing or malformed phone
            RateLimitError: previous OTP for this phone was issued too recently
        """
        phone = normalize_phone(identifier, self.country_code)

        if not self.cooldown.try_acquire(phone):
            remaining = self.cooldown.seconds_remaining(phone)
            logger.info("OTP request throttled", phone=phone, retry_after=remaining)
            raise RateLimitError(
                f"Please wait {remaining} seconds before requesting a new OTP",
                retry_after=remaining,
            )

        code = self.code_factory()
        expires = self.now() + self.otp_ttl
        try:
            user, created = self.users.set_otp_for_phone(phone, code, expires)
        except PyMongoError as e:
            self.cooldown.release(phone)
            logger.error("Failed to store OTP", phone=phone, error=str(e))
            raise DatabaseError("Failed to send OTP, please try again")
        except Exception:
            self.cooldown.release(phone)
            raise

        self.sender(phone, code)

        result: Dict[str, Any] = {
            "phone": phone,
            "otp_issued": True,
            "is_registered": user.is_registered,
            "is_new_user": created,
        }
        if self.expose_otp:
            result["otp"] = code
        return result

    def verify_otp(self, identifier: str, code: str) -> Dict[str, Any]:
        """
        Check a submitted OTP and log the user in.

        Errors are checked in order: input, unknown user, missing code,
        expiry (which clears the code), mismatch. A code that matched but
        was consumed by a concurrent verification counts as a mismatch.
        """
        phone = normalize_phone(identifier, self.country_code)
        code = validate_otp_format(code)

        user = self.users.find_by_phone(phone)
        if user is None:
            raise NotFoundError("User not found. Please request an OTP first.")
        if not user.otp_code or not user.otp_expires:
            raise OtpMismatchError("Invalid OTP")

        if user.otp_expires <= self.now():
            self.users.clear_otp(user.id, user.otp_code, user.otp_expires)
            logger.info("Expired OTP presented", phone=phone)
            raise OtpExpiredError("OTP has expired. Please request a new one.")

        if not hmac.compare_digest(user.otp_code.encode(), code.encode()):
            logger.info("OTP mismatch", phone=phone)
            raise OtpMismatchError("Invalid OTP")

        verified = self.users.consume_otp(user.id, code)
        if verified is None:
            raise OtpMismatchError("Invalid OTP")

        logger.info("OTP verified", user_id=verified.id, registered=verified.is_registered)
        return {
            "token": self.sessions.issue_token(verified.id),
            "user": verified,
            "is_registered": verified.is_registered,
        }

    def complete_registration(
        self,
        user_id: str,
        name: str,
        email: str,
        password: str,
        username: Optional[str] = None,
        address: Optional[Address] = None,
    ):
        """
        One-shot profile completion for a phone-verified account.

        Raises:
            NotFoundError, ForbiddenError (phone not verified),
            AlreadyRegisteredError, ConflictError (email taken)
        """
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if not user.is_verified:
            raise ForbiddenError("Phone number must be verified first")
        if user.is_registered:
            raise AlreadyRegisteredError("User already registered")
        if self.users.email_taken(email, exclude_user_id=user_id):
            raise ConflictError("Email already in use")

        fields: Dict[str, Any] = {
            "name": name.strip(),
            "email": email,
            "password_hash": hash_password(password),
            "username": username,
        }
        if address is not None:
            fields["address"] = address.model_dump()

        updated = self.users.update_user(user_id, **fields)
        logger.info("Registration completed", user_id=user_id)
        return updated
