# module storefront.products.views
from typing import Any, Dict

from fastapi import APIRouter

from . import service as products_service

router = APIRouter(prefix="/api/products", tags=["Products API"])

@router.get("")
def list_products() -> Dict[str, Any]:
    return {"products": products_service.list_products()}

@router.get("/{product_id}")
def get_product(product_id: str) -> Dict[str, Any]:
    return products_service.get_product(product_id)
