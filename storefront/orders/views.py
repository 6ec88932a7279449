# module storefront.orders.views

"""Endpoints en lecture seule sur les commandes de l’utilisateur.
Les commandes sont créées uniquement par le webhook Stripe et ne sont jamais modifiées ici.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from storefront.app_setup.exceptions import NotFound
from storefront.utils.security import require_user
from . import repository as orders_repo

router = APIRouter(prefix="/api/orders", tags=["Orders API"])

@router.get("")
def list_my_orders(user: Dict[str, Any] = Depends(require_user)):
    return {"orders": orders_repo.fetch_user_orders(user["id"])}

@router.get("/{order_id}")
def get_my_order(order_id: str, user: Dict[str, Any] = Depends(require_user)):
    """Commande par id; 404 si elle n’existe pas ou appartient à un autre utilisateur."""
    order = orders_repo.get_user_order(user["id"], order_id)
    if not order:
        raise NotFound("Commande introuvable")
    return order
