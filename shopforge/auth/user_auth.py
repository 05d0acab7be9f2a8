"""
Account operations for registered users: email/password login, profile
and password changes, password reset, and admin user management.
"""

import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models.user import User
from ..services.user_store import UserStore
from ..utils.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from ..utils.logger import get_logger
from .passwords import hash_password, verify_password
from .tokens import SessionIssuer

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AccountService:
    def __init__(
        self,
        users: UserStore,
        sessions: SessionIssuer,
        reset_token_ttl_minutes: int = 10,
        expose_tokens: bool = False,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.users = users
        self.sessions = sessions
        self.reset_ttl = timedelta(minutes=reset_token_ttl_minutes)
        self.expose_tokens = expose_tokens
        self.now = now

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Email/password login; only accounts that completed registration have a password"""
        user = self.users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash or ""):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not user.is_active:
            raise UnauthorizedError("Account is deactivated")

        user = self.users.update_user(user.id, last_login=self.now())
        logger.info("User logged in", user_id=user.id)
        return {"token": self.sessions.issue_token(user.id), "user": user}

    def update_profile(self, user: User, name: Optional[str] = None, email: Optional[str] = None) -> User:
        fields: Dict[str, Any] = {}
        if name is not None:
            fields["name"] = name.strip()
        if email is not None:
            if self.users.email_taken(email, exclude_user_id=user.id):
                raise ConflictError("Email already in use")
            fields["email"] = email
        if not fields:
            return user
        return self.users.update_user(user.id, **fields)

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash or ""):
            raise UnauthorizedError("Current password is incorrect")
        self.users.update_user(user.id, password_hash=hash_password(new_password))
        logger.info("Password changed", user_id=user.id)

    def forgot_password(self, email: str) -> Dict[str, Any]:
        """
        Create a password reset token valid for a short window.

        Only the sha256 of the token is stored. The raw token goes to the log
        (no mail delivery) and into the result when token exposure is enabled.
        """
        user = self.users.find_by_email(email)
        if user is None:
            raise NotFoundError("No user found with this email")

        token = secrets.token_hex(20)
        self.users.update_user(
            user.id,
            password_reset_token=_hash_reset_token(token),
            password_reset_expires=self.now() + self.reset_ttl,
        )
        logger.info("Password reset token issued", user_id=user.id, reset_token=token)

        result: Dict[str, Any] = {"email": user.email}
        if self.expose_tokens:
            result["reset_token"] = token
        return result

    def reset_password(self, token: str, password: str) -> Dict[str, Any]:
        if not token:
            raise InvalidInputError("Invalid or expired reset token")
        user = self.users.find_by_reset_token(_hash_reset_token(token))
        if (
            user is None
            or user.password_reset_expires is None
            or user.password_reset_expires <= self.now()
        ):
            raise InvalidInputError("Invalid or expired reset token")

        user = self.users.update_user(
            user.id,
            password_hash=hash_password(password),
            password_reset_token=None,
            password_reset_expires=None,
        )
        logger.info("Password reset", user_id=user.id)
        return {"token": self.sessions.issue_token(user.id), "user": user}

    # Admin operations

    def list_users(self, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        return self.users.list_users(page=page, limit=limit)

    def get_user(self, user_id: str) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_user(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        role: Optional[str] = None,
    ) -> User:
        self.get_user(user_id)
        fields: Dict[str, Any] = {}
        if name is not None:
            fields["name"] = name.strip()
        if email is not None:
            if self.users.email_taken(email, exclude_user_id=user_id):
                raise ConflictError("Email already in use")
            fields["email"] = email
        if role is not None:
            if role not in ("user", "admin"):
                raise InvalidInputError("Role must be 'user' or 'admin'")
            fields["role"] = role
        return self.users.update_user(user_id, **fields)

    def set_active(self, acting_admin: User, user_id: str, active: bool) -> User:
        if user_id == acting_admin.id and not active:
            raise ForbiddenError("Admins cannot deactivate their own account")
        self.get_user(user_id)
        user = self.users.update_user(user_id, is_active=active)
        logger.info("User activation changed", user_id=user_id, is_active=active)
        return user

    def delete_user(self, acting_admin: User, user_id: str) -> None:
        if user_id == acting_admin.id:
            raise ForbiddenError("Admins cannot delete their own account")
        self.users.delete_user(user_id)
