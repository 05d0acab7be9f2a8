"""Cart routes. Prefix: /api/cart"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from shopforge.app import ShopForgeApp
from shopforge.models.user import User
from .auth_deps import get_current_user, get_shop
from .models import AddCartItemRequest, UpdateCartItemRequest

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("")
async def get_cart(
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    cart = await run_in_threadpool(shop.carts.get_or_create_cart, current_user.id)
    return {"success": True, "cart": cart.to_public()}


@router.post("/items")
async def add_to_cart(
    body: AddCartItemRequest,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    cart = await run_in_threadpool(
        shop.carts.add_item, current_user.id, body.product_id, body.quantity
    )
    return {"success": True, "message": "Item added to cart", "cart": cart.to_public()}


@router.put("/items/{product_id}")
async def update_cart_item(
    product_id: str,
    body: UpdateCartItemRequest,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    cart = await run_in_threadpool(
        shop.carts.update_item, current_user.id, product_id, body.quantity
    )
    return {"success": True, "message": "Cart updated", "cart": cart.to_public()}


@router.delete("/items/{product_id}")
async def remove_from_cart(
    product_id: str,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    cart = await run_in_threadpool(shop.carts.remove_item, current_user.id, product_id)
    return {"success": True, "message": "Item removed from cart", "cart": cart.to_public()}


@router.delete("")
async def clear_cart(
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    cart = await run_in_threadpool(shop.carts.clear_cart, current_user.id)
    return {"success": True, "message": "Cart cleared", "cart": cart.to_public()}
