"""Admin user management. Prefix: /api/users"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from shopforge.app import ShopForgeApp
from shopforge.models.user import User
from .auth_deps import get_shop, require_admin
from .models import AdminUpdateUserRequest

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    users, total = await run_in_threadpool(shop.accounts.list_users, page, limit)
    return {
        "success": True,
        "count": len(users),
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
        "users": [u.to_public() for u in users],
    }


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    user = await run_in_threadpool(shop.accounts.get_user, user_id)
    return {"success": True, "user": user.to_public()}


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: AdminUpdateUserRequest,
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    user = await run_in_threadpool(
        shop.accounts.update_user,
        user_id,
        body.name,
        str(body.email) if body.email else None,
        body.role,
    )
    return {"success": True, "message": "User updated", "user": user.to_public()}


@router.put("/{user_id}/deactivate")
async def deactivate_user(
    user_id: str,
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    user = await run_in_threadpool(shop.accounts.set_active, admin, user_id, False)
    return {"success": True, "message": "User deactivated", "user": user.to_public()}


@router.put("/{user_id}/activate")
async def activate_user(
    user_id: str,
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    user = await run_in_threadpool(shop.accounts.set_active, admin, user_id, True)
    return {"success": True, "message": "User activated", "user": user.to_public()}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    await run_in_threadpool(shop.accounts.delete_user, admin, user_id)
    return {"success": True, "message": "User deleted"}
