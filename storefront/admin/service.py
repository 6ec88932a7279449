# module storefront.admin.service

from typing import Any, Dict, List
from storefront.orders import repository as orders_repo
from storefront.products import repository as products_repo
from storefront.products import service as products_service
from storefront.users import repository as users_repo
import logging

logger = logging.getLogger(__name__)

def list_orders(limit: int = 100) -> List[dict]:
    return orders_repo.fetch_admin_orders(limit=limit)

def list_customers(limit: int = 100) -> List[dict]:
    return users_repo.list_customers(limit=limit)

def list_products() -> List[dict]:
    return products_service.list_products()

def create_product(data: products_service.ProductIn) -> dict:
    product = products_service.create_product(data)
    logger.info("admin.service produit créé id=%s", (product or {}).get("id"))
    return product

def update_product(product_id: str, data: products_service.ProductPatch) -> dict:
    return products_service.update_product(product_id, data)

def delete_product(product_id: str) -> None:
    products_service.delete_product(product_id)
    logger.info("admin.service produit supprimé id=%s", product_id)

def dashboard_stats() -> Dict[str, Any]:
    """Indicateurs du tableau de bord: CA total, nombre de commandes, clients et produits."""
    totals = orders_repo.fetch_order_totals()
    return {
        "totalRevenue": round(sum(totals), 2),
        "totalOrders": len(totals),
        "totalCustomers": users_repo.count_customers(),
        "totalProducts": products_repo.count_products(),
    }
