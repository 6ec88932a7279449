from typing import Iterable, List, Optional, Dict, Any
from storefront.infra.supabase_client import get_supabase, get_service_supabase, is_uuid
import logging

logger = logging.getLogger(__name__)

# module storefront.products.repository
def list_products() -> List[dict]:
    try:
        res = get_supabase().table("products").select("*").order("created_at", desc=True).execute()
        return res.data or []
    except Exception:
        logger.exception("products.repository.list_products failed")
        return []

def get_product(product_id: str) -> Optional[dict]:
    if not is_uuid(product_id):
        return None
    try:
        res = (
            get_supabase()
            .table("products")
            .select("*")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.get_product failed id=%s", product_id)
        return None

def fetch_products_by_ids(ids: List[str]) -> List[dict]:
    """
    Récupère les produits par leurs IDs (table 'products').
    Les erreurs remontent: un checkout ne doit pas confondre panne BD et produit introuvable.
    Un id qui n'est pas un UUID ne peut correspondre à aucun produit: il est écarté de la requête.
    """
    valid = [str(i) for i in ids if is_uuid(i)]
    if not valid:
        return []
    res = (
        get_service_supabase()
        .table("products")
        .select("*")
        .in_("id", valid)
        .execute()
    )
    return res.data or []

def get_products_map(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """
    Retourne un dict {id: produit} à partir d’une liste d’IDs.
    """
    products = fetch_products_by_ids(list(ids))
    return {str(p.get("id")): p for p in products}

def create_product(data: Dict[str, Any]) -> Optional[dict]:
    res = get_service_supabase().table("products").insert(data).execute()
    rows = res.data or []
    return rows[0] if rows else None

def update_product(product_id: str, data: Dict[str, Any]) -> Optional[dict]:
    if not is_uuid(product_id):
        return None
    res = (
        get_service_supabase()
        .table("products")
        .update(data)
        .eq("id", product_id)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def delete_product(product_id: str) -> bool:
    if not is_uuid(product_id):
        return False
    res = get_service_supabase().table("products").delete().eq("id", product_id).execute()
    return bool(res.data)

def decrement_stock(product_id: str, quantity: int) -> Optional[int]:
    """
    Décrément atomique côté base (fonction SQL decrement_product_stock).
    Retourne le stock restant, ou None si le produit n’existe plus.
    """
    res = (
        get_service_supabase()
        .rpc("decrement_product_stock", {"p_product_id": product_id, "p_quantity": int(quantity)})
        .execute()
    )
    data = res.data
    if isinstance(data, list):
        data = data[0] if data else None
    return int(data) if data is not None else None

def count_products() -> int:
    try:
        res = get_service_supabase().table("products").select("id", count="exact").execute()
        if getattr(res, "count", None) is not None:
            return int(res.count)
        return len(res.data or [])
    except Exception:
        logger.exception("products.repository.count_products failed")
        return 0
