"""
User storage service backed by MongoDB.
Handles user CRUD and the atomic OTP updates the authenticator relies on.
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ..models.user import User
from ..utils.exceptions import ConflictError, NotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UserStore:
    """Credential store over the ``users`` collection"""

    def __init__(self, db: Database, now: Callable[[], datetime] = datetime.utcnow):
        self.collection: Collection = db.users
        self.now = now

    @staticmethod
    def _to_user(doc: Optional[Dict[str, Any]]) -> Optional[User]:
        return User.model_validate(doc) if doc else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._to_user(self.collection.find_one({"_id": user_id}))

    def find_by_phone(self, phone: str) -> Optional[User]:
        return self._to_user(self.collection.find_one({"phone": phone}))

    def find_by_email(self, email: str) -> Optional[User]:
        return self._to_user(self.collection.find_one({"email": email.lower()}))

    def find_by_reset_token(self, token_hash: str) -> Optional[User]:
        return self._to_user(self.collection.find_one({"password_reset_token": token_hash}))

    def set_otp_for_phone(self, phone: str, code: str, expires: datetime) -> Tuple[User, bool]:
        """
        Find-or-create by phone and store a fresh OTP.

        Two first-time requests for the same phone can both miss the lookup;
        the loser of the insert race hits the unique phone index and is
        retried as an update.

        Returns:
            (user, created)
        """
        otp_fields = {"otp_code": code, "otp_expires": expires, "updated_at": self.now()}

        doc = self.collection.find_one_and_update(
            {"phone": phone},
            {"$set": otp_fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc:
            return User.model_validate(doc), False

        timestamp = self.now()
        new_doc = {
            "_id": str(uuid.uuid4()),
            "phone": phone,
            "role": "user",
            "is_active": True,
            "is_verified": False,
            "otp_code": code,
            "otp_expires": expires,
            "address": {"country": "India"},
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            self.collection.insert_one(new_doc)
            logger.info("Created partial user", phone=phone, user_id=new_doc["_id"])
            return User.model_validate(new_doc), True
        except DuplicateKeyError:
            logger.info("Concurrent first registration resolved as update", phone=phone)
            doc = self.collection.find_one_and_update(
                {"phone": phone},
                {"$set": otp_fields},
                return_document=ReturnDocument.AFTER,
            )
            if not doc:
                raise NotFoundError("User not found")
            return User.model_validate(doc), False

    def clear_otp(self, user_id: str, code: str, expires: datetime) -> bool:
        """Clear an expired OTP only if it has not been replaced since it was read"""
        result = self.collection.update_one(
            {"_id": user_id, "otp_code": code, "otp_expires": expires},
            {"$set": {"otp_code": None, "otp_expires": None, "updated_at": self.now()}},
        )
        return result.modified_count == 1

    def consume_otp(self, user_id: str, code: str) -> Optional[User]:
        """
        Clear the OTP only if it is still ``code``; mark verified and stamp last_login.
        Returns None when another verification consumed it first.
        """
        timestamp = self.now()
        doc = self.collection.find_one_and_update(
            {"_id": user_id, "otp_code": code},
            {
                "$set": {
                    "otp_code": None,
                    "otp_expires": None,
                    "is_verified": True,
                    "last_login": timestamp,
                    "updated_at": timestamp,
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        return self._to_user(doc)

    def update_user(self, user_id: str, **fields: Any) -> User:
        """
        Set the given fields on a user.

        Raises:
            NotFoundError: no such user
            ConflictError: email already used by another account
        """
        if "email" in fields and fields["email"]:
            fields["email"] = fields["email"].lower()
        fields["updated_at"] = self.now()
        try:
            doc = self.collection.find_one_and_update(
                {"_id": user_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ConflictError("Email already in use")
        if not doc:
            raise NotFoundError("User not found")
        return User.model_validate(doc)

    def email_taken(self, email: str, exclude_user_id: Optional[str] = None) -> bool:
        query: Dict[str, Any] = {"email": email.lower()}
        if exclude_user_id:
            query["_id"] = {"$ne": exclude_user_id}
        return self.collection.find_one(query, {"_id": 1}) is not None

    def list_users(self, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        total = self.collection.count_documents({})
        cursor = (
            self.collection.find({})
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return [User.model_validate(doc) for doc in cursor], total

    def delete_user(self, user_id: str) -> None:
        result = self.collection.delete_one({"_id": user_id})
        if result.deleted_count == 0:
            raise NotFoundError("User not found")
        logger.info("User deleted", user_id=user_id)

    def create_admin(self, phone: str, name: str, email: str, password_hash: str) -> User:
        """Seed an administrator account (used by bootstrap and tests)"""
        timestamp = self.now()
        doc = {
            "_id": str(uuid.uuid4()),
            "phone": phone,
            "name": name,
            "email": email.lower(),
            "password_hash": password_hash,
            "role": "admin",
            "is_active": True,
            "is_verified": True,
            "address": {"country": "India"},
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("User with this phone or email already exists")
        logger.info("Admin user created", user_id=doc["_id"])
        return User.model_validate(doc)
