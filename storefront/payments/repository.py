"""
Accès aux données pour la feature 'payments' (commandes issues du webhook).
L'unicité de payment_result->>id est garantie par un index unique côté base:
deux livraisons concurrentes du même événement ne peuvent créer qu'une seule commande.
"""
from typing import Any, Dict, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module storefront.payments.repository
def find_order_by_payment_id(payment_intent_id: str) -> Optional[dict]:
    """
    Commande déjà créée pour ce PaymentIntent (clé d'idempotence), sinon None.
    """
    res = (
        supabase_client.get_service_supabase()
        .table("orders")
        .select("id, payment_result")
        .eq("payment_result->>id", payment_intent_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def insert_order(row: Dict[str, Any]) -> Optional[dict]:
    """
    Insert via service-role (bypass RLS), typiquement depuis le webhook Stripe.
    - Retourne la ligne créée
    - Retourne None si une commande existe déjà pour ce paiement (violation d'unicité 23505)
    """
    try:
        res = supabase_client.get_service_supabase().table("orders").insert(row).execute()
    except Exception as e:
        if supabase_client.is_unique_violation(e):
            logger.info("payments.repository.insert_order doublon payment_id=%s", (row.get("payment_result") or {}).get("id"))
            return None
        raise
    rows = res.data or []
    return rows[0] if rows else row
