# module storefront.cart.views
from typing import Any, Dict

from fastapi import APIRouter, Depends

from storefront.utils.security import require_user
from . import service as cart_service
from .service import CartItemIn, CartQuantityIn

router = APIRouter(prefix="/api/cart", tags=["Cart API"])

@router.get("")
def get_cart(user: Dict[str, Any] = Depends(require_user)):
    return {"cart": cart_service.get_cart(user)}

@router.post("")
def add_to_cart(payload: CartItemIn, user: Dict[str, Any] = Depends(require_user)):
    return {"cart": cart_service.add_to_cart(user, payload.productId, payload.quantity)}

@router.put("/{product_id}")
def update_cart_item(product_id: str, payload: CartQuantityIn, user: Dict[str, Any] = Depends(require_user)):
    return {"cart": cart_service.update_cart_item(user, product_id, payload.quantity)}

@router.delete("/{product_id}")
def remove_from_cart(product_id: str, user: Dict[str, Any] = Depends(require_user)):
    return {"cart": cart_service.remove_from_cart(user, product_id)}

@router.delete("")
def clear_cart(user: Dict[str, Any] = Depends(require_user)):
    return {"cart": cart_service.clear_cart(user)}
