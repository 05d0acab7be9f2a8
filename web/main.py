"""FastAPI main application for the ShopForge API"""

import os
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shopforge.app import ShopForgeApp
from shopforge.utils.config import config_manager
from shopforge.utils.exceptions import RateLimitError, ShopForgeError, UnauthorizedError
from shopforge.utils.logger import get_logger

from .auth_routes import router as auth_router
from .cart_routes import router as cart_router
from .cooldown_sweeper import start_cooldown_sweeper, stop_cooldown_sweeper
from .order_routes import router as order_router
from .product_routes import router as product_router
from .user_routes import router as user_router

logger = get_logger(__name__)


def _error_response(status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
        headers=headers,
    )


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShopForgeError)
    async def shopforge_error_handler(request: Request, exc: ShopForgeError):
        headers = None
        if isinstance(exc, RateLimitError) and exc.retry_after is not None:
            headers = {"Retry-After": str(exc.retry_after)}
        elif isinstance(exc, UnauthorizedError):
            headers = {"WWW-Authenticate": "Bearer"}
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.message)
        return _error_response(exc.status_code, exc.message, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, "Validation error", errors=_format_validation_errors(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path, error=str(exc))
        return _error_response(500, "Internal server error")


def create_app(shop: Optional[ShopForgeApp] = None) -> FastAPI:
    """Build the API around an application container (created lazily on startup when omitted)"""
    shop = shop or ShopForgeApp()

    app = FastAPI(
        title="ShopForge API",
        description="E-commerce backend with phone OTP authentication",
        version="1.0.0",
    )
    app.state.shop = shop

    settings = shop.config or config_manager.settings
    environment = os.getenv("ENVIRONMENT", settings.app.environment).lower()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins if environment == "production" else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(product_router)
    app.include_router(user_router)

    @app.get("/api/health")
    async def health():
        return {
            "success": True,
            "status": "ok",
            "timestamp": datetime.utcnow().isoformat(),
            "environment": environment,
        }

    @app.on_event("startup")
    async def startup():
        shop.initialize()
        try:
            start_cooldown_sweeper(shop.cooldown, shop.config.auth.cooldown_sweep_seconds)
        except Exception as e:
            logger.warning("Failed to start cooldown sweeper", error=str(e))

    @app.on_event("shutdown")
    async def shutdown():
        try:
            stop_cooldown_sweeper()
        except Exception as e:
            logger.warning("Error stopping cooldown sweeper", error=str(e))
        shop.shutdown()

    return app


app = create_app()
