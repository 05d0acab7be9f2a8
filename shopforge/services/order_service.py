"""
Order placement and order management.

Placing an order reserves stock item by item with atomic conditional
decrements. If any reservation or the order insert fails, every
reservation already made is restocked, so a failed order leaves stock as
it found it. Clearing the cart afterwards is best effort.
"""

import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from ..models.order import Order, OrderLine, OrderStatus, PaymentResult, ShippingAddress
from ..models.product import Product
from ..models.user import User
from ..utils.exceptions import (
    EmptyOrderError,
    ForbiddenError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
)
from ..utils.logger import get_logger
from .cart_service import CartService
from .catalog_store import CatalogStore

logger = get_logger(__name__)


class OrderService:
    def __init__(
        self,
        db: Database,
        catalog: CatalogStore,
        carts: CartService,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.collection: Collection = db.orders
        self.catalog = catalog
        self.carts = carts
        self.now = now

    @staticmethod
    def _merge_lines(items: Iterable[Tuple[str, int]]) -> "OrderedDict[str, int]":
        merged: "OrderedDict[str, int]" = OrderedDict()
        for product_id, quantity in items:
            if quantity < 1:
                raise InvalidInputError("Quantity must be at least 1")
            merged[product_id] = merged.get(product_id, 0) + quantity
        return merged

    def _release(self, reserved: List[Tuple[str, int]]) -> None:
        for product_id, quantity in reversed(reserved):
            try:
                self.catalog.restock(product_id, quantity)
            except Exception as e:
                logger.error(
                    "Failed to restock after aborted order",
                    product_id=product_id,
                    quantity=quantity,
                    error=str(e),
                )

    def place_order(
        self,
        user_id: str,
        items: Iterable[Tuple[str, int]],
        shipping_address: ShippingAddress,
        payment_method: str,
        tax_price: float = 0.0,
        shipping_price: float = 0.0,
    ) -> Order:
        """
        Create an order from (product_id, quantity) pairs.

        Line prices come from the catalog at creation time; tax and shipping
        are taken as given.

        Raises:
            EmptyOrderError: no items
            NotFoundError: unknown or inactive product
            InsufficientStockError: some tracked product lacks stock; nothing
                is reserved and no order is written
        """
        merged = self._merge_lines(items)
        if not merged:
            raise EmptyOrderError("No order items")

        products: Dict[str, Product] = {}
        for product_id in merged:
            product = self.catalog.get_product(product_id)
            if product is None:
                raise NotFoundError(f"Product not found: {product_id}")
            products[product_id] = product

        reserved: List[Tuple[str, int]] = []
        for product_id, quantity in merged.items():
            product = products[product_id]
            if not product.inventory.track_quantity:
                continue
            if not self.catalog.reserve_stock(product_id, quantity):
                self._release(reserved)
                logger.info(
                    "Order rejected, insufficient stock",
                    user_id=user_id,
                    product_id=product_id,
                    requested=quantity,
                )
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}", product_id=product_id
                )
            reserved.append((product_id, quantity))

        lines = [
            OrderLine(
                product_id=product_id,
                name=products[product_id].name,
                quantity=quantity,
                price=products[product_id].price,
            )
            for product_id, quantity in merged.items()
        ]
        items_price = round(sum(line.price * line.quantity for line in lines), 2)
        timestamp = self.now()
        order = Order(
            _id=str(uuid.uuid4()),
            user_id=user_id,
            items=lines,
            shipping_address=shipping_address,
            payment_method=payment_method,
            items_price=items_price,
            tax_price=tax_price,
            shipping_price=shipping_price,
            total_price=round(items_price + tax_price + shipping_price, 2),
            created_at=timestamp,
            updated_at=timestamp,
        )

        try:
            doc = order.model_dump(by_alias=True)
            doc["status"] = order.status.value
            self.collection.insert_one(doc)
        except Exception as e:
            self._release(reserved)
            logger.error("Order insert failed, stock released", user_id=user_id, error=str(e))
            raise

        try:
            self.carts.clear_cart(user_id, missing_ok=True)
        except Exception as e:
            logger.warning("Failed to clear cart after order", user_id=user_id, error=str(e))

        logger.info(
            "Order placed",
            order_id=order.id,
            user_id=user_id,
            items=len(lines),
            total_price=order.total_price,
        )
        return order

    def _to_order(self, doc: Dict[str, Any]) -> Order:
        return Order.model_validate(doc)

    def _find(self, order_id: str) -> Order:
        doc = self.collection.find_one({"_id": order_id})
        if not doc:
            raise NotFoundError("Order not found")
        return self._to_order(doc)

    def _paginate(self, query: Dict[str, Any], page: int, limit: int) -> Dict[str, Any]:
        page = max(page, 1)
        limit = max(limit, 1)
        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        orders = [self._to_order(doc) for doc in cursor]
        return {
            "orders": orders,
            "count": len(orders),
            "total": total,
            "page": page,
            "pages": (total + limit - 1) // limit,
        }

    def list_my_orders(self, user_id: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return self._paginate({"user_id": user_id}, page, limit)

    def list_all_orders(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        return self._paginate({}, page, limit)

    def get_order(self, order_id: str, requester: User) -> Order:
        order = self._find(order_id)
        if order.user_id != requester.id and not requester.is_admin:
            raise ForbiddenError("Not authorized to view this order")
        return order

    def mark_paid(self, order_id: str, requester: User, payment_result: Optional[PaymentResult] = None) -> Order:
        """Record a payment result; no gateway is contacted"""
        order = self._find(order_id)
        if order.user_id != requester.id:
            raise ForbiddenError("Not authorized to pay for this order")

        timestamp = self.now()
        doc = self.collection.find_one_and_update(
            {"_id": order_id},
            {
                "$set": {
                    "is_paid": True,
                    "paid_at": timestamp,
                    "payment_result": payment_result.model_dump() if payment_result else None,
                    "status": OrderStatus.PROCESSING.value,
                    "updated_at": timestamp,
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        logger.info("Order paid", order_id=order_id, user_id=requester.id)
        return self._to_order(doc)

    def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        tracking_number: Optional[str] = None,
    ) -> Order:
        self._find(order_id)
        timestamp = self.now()
        fields: Dict[str, Any] = {"status": status.value, "updated_at": timestamp}
        if tracking_number:
            fields["tracking_number"] = tracking_number
        if status == OrderStatus.DELIVERED:
            fields["is_delivered"] = True
            fields["delivered_at"] = timestamp

        doc = self.collection.find_one_and_update(
            {"_id": order_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        logger.info("Order status updated", order_id=order_id, status=status.value)
        return self._to_order(doc)
