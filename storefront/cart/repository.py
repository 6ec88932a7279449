"""
Accès aux données pour le panier persistant (table 'cart_items').
"""
from typing import List, Optional
from storefront.infra.supabase_client import get_service_supabase, is_uuid

# module storefront.cart.repository
def list_items(user_id: str) -> List[dict]:
    res = (
        get_service_supabase()
        .table("cart_items")
        .select("id, product_id, quantity, created_at")
        .eq("user_id", user_id)
        .order("created_at", desc=False)
        .execute()
    )
    return res.data or []

def get_item(user_id: str, product_id: str) -> Optional[dict]:
    if not is_uuid(product_id):
        return None
    res = (
        get_service_supabase()
        .table("cart_items")
        .select("id, product_id, quantity")
        .eq("user_id", user_id)
        .eq("product_id", product_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def set_quantity(user_id: str, product_id: str, quantity: int) -> None:
    """Insère ou remplace la ligne (unicité user_id/product_id)."""
    (
        get_service_supabase()
        .table("cart_items")
        .upsert({"user_id": user_id, "product_id": product_id, "quantity": quantity}, on_conflict="user_id,product_id")
        .execute()
    )

def delete_item(user_id: str, product_id: str) -> bool:
    if not is_uuid(product_id):
        return False
    res = (
        get_service_supabase()
        .table("cart_items")
        .delete()
        .eq("user_id", user_id)
        .eq("product_id", product_id)
        .execute()
    )
    return bool(res.data)

def clear(user_id: str) -> None:
    get_service_supabase().table("cart_items").delete().eq("user_id", user_id).execute()
