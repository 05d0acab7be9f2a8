"""
Product catalog storage.

Only what carts and orders need: product reads, admin product creation,
and atomic conditional stock updates.
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ..models.product import Product
from ..utils.exceptions import ConflictError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CatalogStore:
    def __init__(self, db: Database, now: Callable[[], datetime] = datetime.utcnow):
        self.collection: Collection = db.products
        self.now = now

    def get_product(self, product_id: str, include_inactive: bool = False) -> Optional[Product]:
        query: Dict[str, Any] = {"_id": product_id}
        if not include_inactive:
            query["is_active"] = True
        doc = self.collection.find_one(query)
        return Product.model_validate(doc) if doc else None

    def list_products(self, page: int = 1, limit: int = 20) -> Tuple[List[Product], int]:
        query = {"is_active": True}
        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return [Product.model_validate(doc) for doc in cursor], total

    def create_product(self, **fields: Any) -> Product:
        """
        Insert a product.

        Raises:
            ConflictError: SKU already exists
        """
        timestamp = self.now()
        doc = {
            "_id": str(uuid.uuid4()),
            "is_active": True,
            "created_at": timestamp,
            "updated_at": timestamp,
            **fields,
        }
        product = Product.model_validate(doc)
        doc = product.model_dump(by_alias=True)
        try:
            self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError(f"Product with SKU {product.sku} already exists")
        logger.info("Product created", product_id=product.id, sku=product.sku)
        return product

    def reserve_stock(self, product_id: str, quantity: int) -> bool:
        """
        Decrement stock by ``quantity`` only if at least that much remains.
        Single conditional update, so concurrent reservations cannot oversell.
        """
        result = self.collection.update_one(
            {"_id": product_id, "inventory.quantity": {"$gte": quantity}},
            {"$inc": {"inventory.quantity": -quantity}, "$set": {"updated_at": self.now()}},
        )
        return result.modified_count == 1

    def restock(self, product_id: str, quantity: int) -> None:
        self.collection.update_one(
            {"_id": product_id},
            {"$inc": {"inventory.quantity": quantity}, "$set": {"updated_at": self.now()}},
        )
