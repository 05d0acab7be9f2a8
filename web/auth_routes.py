"""
FastAPI routes for phone OTP authentication and account management.

Prefix: /api/auth
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from shopforge.app import ShopForgeApp
from shopforge.models.user import Address, User
from .auth_deps import get_current_user, get_shop
from .models import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterDetailsRequest,
    ResetPasswordRequest,
    SendOtpRequest,
    UpdateProfileRequest,
    VerifyOtpRequest,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/send-otp")
async def send_otp(body: SendOtpRequest, shop: ShopForgeApp = Depends(get_shop)) -> Dict[str, Any]:
    """
    Issue a one-time code for a phone number.

    Response:
        {"success": true, "message": ..., "phone": ..., "isRegistered": ...}
        plus "otp" when OTP exposure is enabled for development.
    """
    result = await run_in_threadpool(shop.otp.send_otp, body.phone)
    payload: Dict[str, Any] = {
        "success": True,
        "message": "OTP sent successfully",
        "phone": result["phone"],
        "isRegistered": result["is_registered"],
    }
    if "otp" in result:
        payload["otp"] = result["otp"]
    return payload


@router.post("/verify-otp")
async def verify_otp(body: VerifyOtpRequest, shop: ShopForgeApp = Depends(get_shop)) -> Dict[str, Any]:
    result = await run_in_threadpool(shop.otp.verify_otp, body.phone, str(body.otp))
    return {
        "success": True,
        "message": "OTP verified successfully",
        "token": result["token"],
        "user": result["user"].to_public(),
        "isRegistered": result["is_registered"],
    }


@router.post("/register-details")
async def register_details(
    body: RegisterDetailsRequest,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    address = Address(
        street=body.street,
        city=body.city,
        state=body.state,
        zip_code=body.zip_code,
        country=body.country,
    )
    user = await run_in_threadpool(
        shop.otp.complete_registration,
        current_user.id,
        body.name,
        str(body.email),
        body.password,
        body.user_name,
        address,
    )
    return {"success": True, "message": "Registration completed successfully", "user": user.to_public()}


@router.post("/login")
async def login(body: LoginRequest, shop: ShopForgeApp = Depends(get_shop)) -> Dict[str, Any]:
    result = await run_in_threadpool(shop.accounts.login, str(body.email), body.password)
    return {
        "success": True,
        "message": "Login successful",
        "token": result["token"],
        "user": result["user"].to_public(),
    }


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return {"success": True, "user": current_user.to_public()}


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)) -> Dict[str, Any]:
    """Tokens are stateless; the client discards its copy"""
    return {"success": True, "message": "Logged out successfully"}


@router.put("/profile")
async def update_profile(
    body: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    user = await run_in_threadpool(
        shop.accounts.update_profile,
        current_user,
        body.name,
        str(body.email) if body.email else None,
    )
    return {"success": True, "message": "Profile updated successfully", "user": user.to_public()}


@router.put("/password")
async def change_password(
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    await run_in_threadpool(
        shop.accounts.change_password, current_user, body.current_password, body.new_password
    )
    return {"success": True, "message": "Password changed successfully"}


@router.post("/forgot-password")
@router.post("/forgotpassword", include_in_schema=False)
async def forgot_password(body: ForgotPasswordRequest, shop: ShopForgeApp = Depends(get_shop)) -> Dict[str, Any]:
    result = await run_in_threadpool(shop.accounts.forgot_password, str(body.email))
    payload: Dict[str, Any] = {"success": True, "message": "Password reset token generated"}
    if "reset_token" in result:
        payload["resetToken"] = result["reset_token"]
    return payload


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, shop: ShopForgeApp = Depends(get_shop)) -> Dict[str, Any]:
    result = await run_in_threadpool(shop.accounts.reset_password, body.reset_token, body.password)
    return {
        "success": True,
        "message": "Password reset successful",
        "token": result["token"],
        "user": result["user"].to_public(),
    }
