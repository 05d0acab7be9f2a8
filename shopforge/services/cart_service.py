"""Per-user shopping cart"""

import uuid
from datetime import datetime
from typing import Callable, Optional

from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ..models.cart import Cart
from ..utils.exceptions import InsufficientStockError, InvalidInputError, NotFoundError
from ..utils.logger import get_logger
from .catalog_store import CatalogStore

logger = get_logger(__name__)


class CartService:
    def __init__(
        self,
        db: Database,
        catalog: CatalogStore,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.collection: Collection = db.carts
        self.catalog = catalog
        self.now = now

    def get_or_create_cart(self, user_id: str) -> Cart:
        """Return the user's cart, creating an empty one on first use"""
        doc = self.collection.find_one({"user_id": user_id})
        if doc:
            return Cart.model_validate(doc)

        timestamp = self.now()
        doc = {
            "_id": str(uuid.uuid4()),
            "user_id": user_id,
            "items": [],
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            self.collection.insert_one(doc)
        except DuplicateKeyError:
            # Created by a concurrent request; unique user_id index
            doc = self.collection.find_one({"user_id": user_id})
        return Cart.model_validate(doc)

    def _get_cart(self, user_id: str) -> Cart:
        doc = self.collection.find_one({"user_id": user_id})
        if not doc:
            raise NotFoundError("Cart not found")
        return Cart.model_validate(doc)

    def _increment_line(self, user_id: str, product_id: str, quantity: int) -> bool:
        result = self.collection.update_one(
            {"user_id": user_id, "items.product_id": product_id},
            {"$inc": {"items.$.quantity": quantity}, "$set": {"updated_at": self.now()}},
        )
        return result.matched_count == 1

    def add_item(self, user_id: str, product_id: str, quantity: int = 1) -> Cart:
        """
        Add a product, merging into an existing line for the same product.

        The stock check here is optimistic; orders re-check atomically.

        Raises:
            InvalidInputError: quantity below 1
            NotFoundError: unknown or inactive product
            InsufficientStockError: tracked stock below the requested quantity
        """
        if quantity < 1:
            raise InvalidInputError("Quantity must be at least 1")

        product = self.catalog.get_product(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        if not product.has_stock(quantity):
            raise InsufficientStockError("Insufficient stock", product_id=product_id)

        if not self._increment_line(user_id, product_id, quantity):
            self.get_or_create_cart(user_id)
            line = {"product_id": product_id, "quantity": quantity, "price": product.price}
            result = self.collection.update_one(
                {"user_id": user_id, "items.product_id": {"$ne": product_id}},
                {"$push": {"items": line}, "$set": {"updated_at": self.now()}},
            )
            if result.modified_count == 0:
                # Line was pushed concurrently
                self._increment_line(user_id, product_id, quantity)

        logger.info("Cart item added", user_id=user_id, product_id=product_id, quantity=quantity)
        return self._get_cart(user_id)

    def update_item(self, user_id: str, product_id: str, quantity: int) -> Cart:
        if quantity <= 0:
            raise InvalidInputError("Quantity must be greater than 0")
        cart = self._get_cart(user_id)
        if cart.find_line(product_id) is None:
            raise NotFoundError("Item not found in cart")

        product = self.catalog.get_product(product_id)
        if product is not None and not product.has_stock(quantity):
            raise InsufficientStockError("Insufficient stock", product_id=product_id)

        result = self.collection.update_one(
            {"user_id": user_id, "items.product_id": product_id},
            {"$set": {"items.$.quantity": quantity, "updated_at": self.now()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Item not found in cart")
        return self._get_cart(user_id)

    def remove_item(self, user_id: str, product_id: str) -> Cart:
        cart = self._get_cart(user_id)
        if cart.find_line(product_id) is None:
            raise NotFoundError("Item not found in cart")
        self.collection.update_one(
            {"user_id": user_id},
            {"$pull": {"items": {"product_id": product_id}}, "$set": {"updated_at": self.now()}},
        )
        return self._get_cart(user_id)

    def clear_cart(self, user_id: str, missing_ok: bool = False) -> Optional[Cart]:
        result = self.collection.update_one(
            {"user_id": user_id},
            {"$set": {"items": [], "updated_at": self.now()}},
        )
        if result.matched_count == 0:
            if missing_ok:
                return None
            raise NotFoundError("Cart not found")
        return self._get_cart(user_id)
