"""Catalog read routes plus admin product creation. Prefix: /api/products"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool

from shopforge.app import ShopForgeApp
from shopforge.models.user import User
from shopforge.utils.exceptions import NotFoundError
from .auth_deps import get_shop, require_admin
from .models import CreateProductRequest

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    products, total = await run_in_threadpool(shop.catalog.list_products, page, limit)
    return {
        "success": True,
        "count": len(products),
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
        "products": [p.to_public() for p in products],
    }


@router.get("/{product_id}")
async def get_product(product_id: str, shop: ShopForgeApp = Depends(get_shop)) -> Dict[str, Any]:
    product = await run_in_threadpool(shop.catalog.get_product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return {"success": True, "product": product.to_public()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: CreateProductRequest,
    admin: User = Depends(require_admin),
    shop: ShopForgeApp = Depends(get_shop),
) -> Dict[str, Any]:
    product = await run_in_threadpool(
        lambda: shop.catalog.create_product(
            name=body.name,
            description=body.description,
            price=body.price,
            sku=body.sku,
            category=body.category,
            brand=body.brand,
            inventory={
                "quantity": body.quantity,
                "track_quantity": body.track_quantity,
                "low_stock_threshold": body.low_stock_threshold,
            },
        )
    )
    return {"success": True, "message": "Product created", "product": product.to_public()}
