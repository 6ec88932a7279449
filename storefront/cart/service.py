"""
Panier persistant de l'utilisateur.
Le checkout ne lit pas cette table: le front envoie son panier dans la requête create-intent,
et les prix y sont de toute façon recalculés côté serveur.
"""
from typing import Any, Dict

from pydantic import BaseModel, Field

from storefront.app_setup.exceptions import InsufficientStock, NotFound
from storefront.products import repository as products_repo
from . import repository

class CartItemIn(BaseModel):
    productId: str = Field(min_length=1)
    quantity: int = Field(default=1, gt=0)

class CartQuantityIn(BaseModel):
    quantity: int = Field(gt=0)

def _require_product(product_id: str) -> Dict[str, Any]:
    product = products_repo.get_product(product_id)
    if not product:
        raise NotFound("Produit introuvable")
    return product

def _check_stock(product: Dict[str, Any], quantity: int) -> None:
    if int(product.get("stock") or 0) < quantity:
        raise InsufficientStock(product.get("name") or str(product.get("id")))

def get_cart(user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Panier hydraté: [{productId, quantity, product}] + sous-total indicatif.
    Les lignes dont le produit a été supprimé sont ignorées.
    """
    rows = repository.list_items(user["id"])
    products = products_repo.get_products_map([str(r.get("product_id")) for r in rows])
    items = []
    subtotal = 0.0
    for r in rows:
        product = products.get(str(r.get("product_id")))
        if not product:
            continue
        qty = int(r.get("quantity") or 0)
        subtotal += float(product.get("price") or 0) * qty
        items.append({"productId": str(r.get("product_id")), "quantity": qty, "product": product})
    return {"items": items, "subtotal": round(subtotal, 2)}

def add_to_cart(user: Dict[str, Any], product_id: str, quantity: int) -> Dict[str, Any]:
    product = _require_product(product_id)
    existing = repository.get_item(user["id"], product_id)
    new_quantity = quantity + int((existing or {}).get("quantity") or 0)
    _check_stock(product, new_quantity)
    repository.set_quantity(user["id"], product_id, new_quantity)
    return get_cart(user)

def update_cart_item(user: Dict[str, Any], product_id: str, quantity: int) -> Dict[str, Any]:
    if not repository.get_item(user["id"], product_id):
        raise NotFound("Article absent du panier")
    _check_stock(_require_product(product_id), quantity)
    repository.set_quantity(user["id"], product_id, quantity)
    return get_cart(user)

def remove_from_cart(user: Dict[str, Any], product_id: str) -> Dict[str, Any]:
    if not repository.delete_item(user["id"], product_id):
        raise NotFound("Article absent du panier")
    return get_cart(user)

def clear_cart(user: Dict[str, Any]) -> Dict[str, Any]:
    repository.clear(user["id"])
    return {"items": [], "subtotal": 0.0}
