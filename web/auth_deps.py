"""
FastAPI dependencies for authentication and authorization.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.concurrency import run_in_threadpool

from shopforge.app import ShopForgeApp
from shopforge.models.user import User
from shopforge.utils.exceptions import ForbiddenError, UnauthorizedError


def get_shop(request: Request) -> ShopForgeApp:
    """The initialized application container attached to the FastAPI app"""
    return request.app.state.shop


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from request (Authorization header or cookie)"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip()

    token = request.cookies.get("session_token")
    if token:
        return token

    return None


async def get_current_user(request: Request, shop: ShopForgeApp = Depends(get_shop)) -> User:
    """Dependency to get current authenticated user"""
    token = get_session_token(request)
    if not token:
        raise UnauthorizedError("Not authorized, no token")
    return await run_in_threadpool(shop.sessions.verify_token, token)


def require_role(role: str):
    """Dependency factory for role-based access control"""
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise ForbiddenError(f"User role {current_user.role} is not authorized to access this route")
        return current_user

    return role_checker


# Pre-configured dependencies
require_admin = require_role("admin")
require_auth = get_current_user
