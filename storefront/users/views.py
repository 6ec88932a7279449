# module storefront.users.views

"""Endpoints utilisateur authentifié: carnet d’adresses et wishlist.
Chaque mutation renvoie la collection complète à jour pour que le front se resynchronise.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from storefront.utils.security import require_user
from . import service as users_service
from .service import AddressIn, WishlistIn

router = APIRouter(prefix="/api/users", tags=["Users API"])

@router.get("/addresses")
def get_addresses(user: Dict[str, Any] = Depends(require_user)):
    return {"addresses": users_service.list_addresses(user)}

@router.post("/addresses", status_code=201)
def add_address(payload: AddressIn, user: Dict[str, Any] = Depends(require_user)):
    addresses = users_service.add_address(user, payload)
    return {"message": "Adresse ajoutée", "addresses": addresses}

@router.put("/addresses/{address_id}")
def update_address(address_id: str, payload: AddressIn, user: Dict[str, Any] = Depends(require_user)):
    addresses = users_service.update_address(user, address_id, payload)
    return {"message": "Adresse mise à jour", "addresses": addresses}

@router.delete("/addresses/{address_id}")
def delete_address(address_id: str, user: Dict[str, Any] = Depends(require_user)):
    addresses = users_service.delete_address(user, address_id)
    return {"message": "Adresse supprimée", "addresses": addresses}

@router.get("/wishlist")
def get_wishlist(user: Dict[str, Any] = Depends(require_user)):
    return {"wishlist": users_service.get_wishlist(user)}

@router.post("/wishlist")
def add_to_wishlist(payload: WishlistIn, user: Dict[str, Any] = Depends(require_user)):
    wishlist = users_service.add_to_wishlist(user, payload.productId)
    return {"message": "Produit ajouté à la wishlist", "wishlist": wishlist}

@router.delete("/wishlist/{product_id}")
def remove_from_wishlist(product_id: str, user: Dict[str, Any] = Depends(require_user)):
    wishlist = users_service.remove_from_wishlist(user, product_id)
    return {"message": "Produit retiré de la wishlist", "wishlist": wishlist}
