"""Couche d’accès aux données (Supabase) pour le domaine Utilisateurs.
Contient les fonctions de lecture/écriture sur les tables users, addresses et wishlist_items.
Les lectures « catchent » les exceptions et renvoient des valeurs neutres ([], None);
les écritures laissent remonter l’erreur pour que l’appelant ne croie pas à un succès.
"""
from typing import Any, Dict, List, Optional
import logging
from storefront.infra.supabase_client import get_service_supabase, is_unique_violation, is_uuid

logger = logging.getLogger(__name__)

ADDRESS_COLUMNS = "id, user_id, label, full_name, street_address, city, state, zip_code, phone_number, is_default, created_at"

# --- Profils ---

def get_user_by_clerk_id(clerk_id: str) -> Optional[dict]:
    """Récupère un utilisateur par identifiant Clerk (sujet du jeton).
    - Retour: dict utilisateur ou None si introuvable/erreur
    """
    if not clerk_id:
        return None
    try:
        res = (
            get_service_supabase()
            .table("users")
            .select("*")
            .eq("clerk_id", clerk_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("users.repository.get_user_by_clerk_id failed clerk_id=%s", clerk_id)
        return None

def upsert_user_profile(clerk_id: str, email: Optional[str] = None, name: Optional[str] = None, image_url: Optional[str] = None) -> Optional[dict]:
    """Crée ou met à jour le profil applicatif (table users) à partir des claims Clerk.
    - Conflit sur clerk_id: les champs fournis écrasent les anciens, stripe_customer_id n’est jamais touché.
    - Retour: la ligne écrite
    """
    payload: Dict[str, Any] = {"clerk_id": clerk_id}
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    if image_url:
        payload["image_url"] = image_url
    res = (
        get_service_supabase()
        .table("users")
        .upsert(payload, on_conflict="clerk_id")
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else payload

def set_stripe_customer_id(user_id: str, customer_id: str) -> bool:
    """Enregistre le customer Stripe une seule fois (mise à jour conditionnelle sur NULL).
    - Retour: True si la ligne a été écrite, False si un identifiant existait déjà
    """
    res = (
        get_service_supabase()
        .table("users")
        .update({"stripe_customer_id": customer_id})
        .eq("id", user_id)
        .is_("stripe_customer_id", "null")
        .execute()
    )
    return bool(res.data)

def list_customers(limit: int = 100) -> List[dict]:
    try:
        res = (
            get_service_supabase()
            .table("users")
            .select("id, clerk_id, email, name, image_url, role, created_at")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("users.repository.list_customers failed")
        return []

# --- Adresses ---

def list_addresses(user_id: str) -> List[dict]:
    """Adresses de l’utilisateur, dans l’ordre d’ajout."""
    res = (
        get_service_supabase()
        .table("addresses")
        .select(ADDRESS_COLUMNS)
        .eq("user_id", user_id)
        .order("created_at", desc=False)
        .execute()
    )
    return res.data or []

def get_address(user_id: str, address_id: str) -> Optional[dict]:
    """Adresse par id, restreinte au propriétaire. None si absente."""
    if not is_uuid(address_id):
        return None
    try:
        res = (
            get_service_supabase()
            .table("addresses")
            .select(ADDRESS_COLUMNS)
            .eq("user_id", user_id)
            .eq("id", address_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("users.repository.get_address failed id=%s", address_id)
        return None

def clear_default_addresses(user_id: str) -> None:
    (
        get_service_supabase()
        .table("addresses")
        .update({"is_default": False})
        .eq("user_id", user_id)
        .eq("is_default", True)
        .execute()
    )

def insert_address(user_id: str, data: Dict[str, Any]) -> Optional[dict]:
    res = get_service_supabase().table("addresses").insert({**data, "user_id": user_id}).execute()
    rows = res.data or []
    return rows[0] if rows else None

def update_address(user_id: str, address_id: str, data: Dict[str, Any]) -> Optional[dict]:
    if not is_uuid(address_id):
        return None
    res = (
        get_service_supabase()
        .table("addresses")
        .update(data)
        .eq("user_id", user_id)
        .eq("id", address_id)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def delete_address(user_id: str, address_id: str) -> bool:
    # id non UUID: aucune adresse ne peut correspondre
    if not is_uuid(address_id):
        return False
    res = (
        get_service_supabase()
        .table("addresses")
        .delete()
        .eq("user_id", user_id)
        .eq("id", address_id)
        .execute()
    )
    return bool(res.data)

# --- Wishlist ---

def list_wishlist_product_ids(user_id: str) -> List[str]:
    res = (
        get_service_supabase()
        .table("wishlist_items")
        .select("product_id")
        .eq("user_id", user_id)
        .order("created_at", desc=False)
        .execute()
    )
    return [str(r.get("product_id")) for r in (res.data or [])]

def insert_wishlist_item(user_id: str, product_id: str) -> bool:
    """Ajoute un produit; retourne False si déjà présent (clé primaire user_id/product_id)."""
    try:
        get_service_supabase().table("wishlist_items").insert({"user_id": user_id, "product_id": product_id}).execute()
        return True
    except Exception as e:
        if is_unique_violation(e):
            return False
        raise

def delete_wishlist_item(user_id: str, product_id: str) -> bool:
    res = (
        get_service_supabase()
        .table("wishlist_items")
        .delete()
        .eq("user_id", user_id)
        .eq("product_id", product_id)
        .execute()
    )
    return bool(res.data)

def count_customers() -> int:
    """
    Compte les profils via count='exact' si disponible, sinon fallback sur len(data).
    """
    try:
        res = get_service_supabase().table("users").select("id", count="exact").execute()
        if getattr(res, "count", None) is not None:
            return int(res.count)
        return len(res.data or [])
    except Exception:
        logger.exception("users.repository.count_customers failed")
        return 0
