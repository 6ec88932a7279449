from typing import List, Optional
from storefront.infra.supabase_client import get_service_supabase, is_uuid
import logging

logger = logging.getLogger(__name__)

ORDER_COLUMNS = "id, user_id, order_items, shipping_address, payment_result, total_price, status, created_at"

def fetch_user_orders(user_id: str, limit: int = 50) -> List[dict]:
    """
    Commandes de l'utilisateur connecté, les plus récentes d'abord
    """
    if not user_id:
        return []
    try:
        res = (
            get_service_supabase()
            .table("orders")
            .select(ORDER_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_user_orders failed user_id=%s", user_id)
        return []

def get_user_order(user_id: str, order_id: str) -> Optional[dict]:
    if not user_id or not is_uuid(order_id):
        return None
    try:
        res = (
            get_service_supabase()
            .table("orders")
            .select(ORDER_COLUMNS)
            .eq("user_id", user_id)
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_user_order failed id=%s", order_id)
        return None

def fetch_admin_orders(limit: int = 100) -> List[dict]:
    """
    Commandes pour l'admin, avec jointure sur users
    """
    try:
        res = (
            get_service_supabase()
            .table("orders")
            .select(ORDER_COLUMNS + ", users(email, name)")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_admin_orders failed")
        return []

def fetch_order_totals() -> List[float]:
    """Montants de toutes les commandes (calcul du chiffre d'affaires admin)."""
    try:
        res = get_service_supabase().table("orders").select("total_price").execute()
        return [float(r.get("total_price") or 0) for r in (res.data or [])]
    except Exception:
        logger.exception("orders.repository.fetch_order_totals failed")
        return []
