# module storefront.admin.views

"""Endpoints du dashboard admin (JSON).
Toutes les routes exigent le rôle admin (require_admin au niveau du router).
Les images produit sont des URLs déjà hébergées; l’upload de fichiers n’est pas géré ici.
"""
from fastapi import APIRouter, Depends

from storefront.products.service import ProductIn, ProductPatch
from storefront.utils.security import require_admin
from . import service as admin_service

router = APIRouter(prefix="/api/admin", tags=["Admin API"], dependencies=[Depends(require_admin)])

@router.get("/products")
def get_all_products():
    return {"products": admin_service.list_products()}

@router.post("/products", status_code=201)
def create_product(payload: ProductIn):
    return admin_service.create_product(payload)

@router.put("/products/{product_id}")
def update_product(product_id: str, payload: ProductPatch):
    return admin_service.update_product(product_id, payload)

@router.delete("/products/{product_id}")
def delete_product(product_id: str):
    admin_service.delete_product(product_id)
    return {"message": "Produit supprimé"}

@router.get("/orders")
def get_all_orders():
    return {"orders": admin_service.list_orders()}

@router.get("/customers")
def get_all_customers():
    return {"customers": admin_service.list_customers()}

@router.get("/stats")
def get_dashboard_stats():
    return admin_service.dashboard_stats()
