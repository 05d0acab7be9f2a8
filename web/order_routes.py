"""Order routes. Prefix: /api/orders"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool

from shopforge.app import ShopForgeApp
from shopforge.models.order import PaymentResult, ShippingAddress
from shopforge.models.user import User
from .auth_deps import get_current_user, get_shop, require_admin
from .models import CreateOrderRequest, PaymentResultRequest, UpdateOrderStatusRequest

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _page_payload(result: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": True,
        "count": result["count"],
        "total": result["total"],
        "page": result["page"],
        "pages": result["pages"],
        "orders": [order.to_public() for order in result["orders"]],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    body: CreateOrderRequest,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    shipping = ShippingAddress(
        address=body.shipping_address.address,
        city=body.shipping_address.city,
        postal_code=body.shipping_address.postal_code,
        country=body.shipping_address.country,
    )
    order = await run_in_threadpool(
        shop.orders.place_order,
        current_user.id,
        [(item.product_id, item.quantity) for item in body.order_items],
        shipping,
        body.payment_method,
        body.tax_price,
        body.shipping_price,
    )
    return {"success": True, "message": "Order created successfully", "order": order.to_public()}


@router.get("/mine")
async def my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    result = await run_in_threadpool(shop.orders.list_my_orders, current_user.id, page, limit)
    return _page_payload(result)


@router.get("")
async def all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    result = await run_in_threadpool(shop.orders.list_all_orders, page, limit)
    return _page_payload(result)


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    order = await run_in_threadpool(shop.orders.get_order, order_id, current_user)
    return {"success": True, "order": order.to_public()}


@router.put("/{order_id}/pay")
async def pay_order(
    order_id: str,
    body: PaymentResultRequest,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    payment = PaymentResult(**body.model_dump())
    order = await run_in_threadpool(shop.orders.mark_paid, order_id, current_user, payment)
    return {"success": True, "message": "Order marked as paid", "order": order.to_public()}


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    order = await run_in_threadpool(
        shop.orders.update_status, order_id, body.status, body.tracking_number
    )
    return {"success": True, "message": "Order status updated", "order": order.to_public()}
