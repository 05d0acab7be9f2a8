"""
Session tokens.

Tokens are signed with itsdangerous (HMAC) and carry the user id as ``sub``
plus a timestamp, so they can't be forged and expire after ``max_age``.
There is no server-side session table and no revocation.
"""

from __future__ import annotations

from typing import Callable, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..models.user import User
from ..utils.exceptions import UnauthorizedError
from ..utils.logger import get_logger

logger = get_logger(__name__)

TOKEN_SALT = "shopforge-session"
INVALID_TOKEN_MESSAGE = "Not authorized, token failed"


class SessionIssuer:
    def __init__(
        self,
        secret: str,
        expiry_days: int = 30,
        load_user: Optional[Callable[[str], Optional[User]]] = None,
    ):
        if not secret:
            raise ValueError("Token secret must be set")
        self.serializer = URLSafeTimedSerializer(secret_key=secret, salt=TOKEN_SALT)
        self.max_age_seconds = expiry_days * 24 * 60 * 60
        self.load_user = load_user

    def issue_token(self, user_id: str) -> str:
        return self.serializer.dumps({"sub": user_id})

    def decode_subject(self, token: str) -> str:
        """Return the ``sub`` of a valid token, raising UnauthorizedError otherwise"""
        if not token:
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE)
        try:
            data = self.serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired:
            logger.info("Expired session token presented")
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE)
        except BadSignature:
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE)
        if not isinstance(data, dict) or not data.get("sub"):
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE)
        return data["sub"]

    def verify_token(self, token: str) -> User:
        """
        Resolve a token to an active user.

        Raises:
            UnauthorizedError: bad signature, expired, no subject, unknown or
                inactive account. The message is the same in every case.
        """
        user_id = self.decode_subject(token)
        user = self.load_user(user_id) if self.load_user else None
        if user is None or not user.is_active:
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE)
        return user
