"""
Sérialisation/désérialisation des métadonnées Stripe du PaymentIntent.
Seul canal qui transporte le contenu de la commande jusqu'au webhook.
Stripe limite chaque valeur à 500 caractères et 50 clés: les JSON longs sont
découpés en <clé>, <clé>_1, <clé>_2... puis recollés à la lecture.
"""
import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Tuple

from storefront.app_setup.exceptions import ValidationFailed
from .pricing import format_amount

MAX_VALUE_LENGTH = 500
MAX_KEYS = 50

# module storefront.payments.metadata
def _chunk_key(key: str, index: int) -> str:
    return key if index == 0 else f"{key}_{index}"

def pack_json(key: str, value: Any) -> Dict[str, str]:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    chunks = [text[i:i + MAX_VALUE_LENGTH] for i in range(0, len(text), MAX_VALUE_LENGTH)] or [""]
    return {_chunk_key(key, i): chunk for i, chunk in enumerate(chunks)}

def unpack_json(meta: Dict[str, Any], key: str) -> Any:
    if key not in meta:
        raise ValueError(f"metadata.{key} manquant")
    parts: List[str] = []
    index = 0
    while _chunk_key(key, index) in meta:
        parts.append(str(meta[_chunk_key(key, index)]))
        index += 1
    return json.loads("".join(parts))

def make_metadata(
    user: Dict[str, Any],
    order_items: List[Dict[str, Any]],
    shipping_address: Dict[str, Any],
    total: Decimal,
) -> Dict[str, str]:
    """
    Construit les métadonnées du PaymentIntent:
    - userId / clerkId: propriétaire de la commande
    - orderItems: articles validés (prix serveur), JSON éventuellement découpé
    - shippingAddress: adresse de livraison, JSON éventuellement découpé
    - totalPrice: total au format "53.20"
    Soulève ValidationFailed si le panier dépasse la capacité des métadonnées Stripe.
    """
    metadata: Dict[str, str] = {
        "userId": str(user.get("id") or ""),
        "clerkId": str(user.get("clerk_id") or ""),
        "totalPrice": format_amount(total),
    }
    metadata.update(pack_json("orderItems", order_items))
    metadata.update(pack_json("shippingAddress", shipping_address))
    if len(metadata) > MAX_KEYS:
        raise ValidationFailed("Panier trop volumineux pour un seul paiement")
    return metadata

def extract_metadata(meta: Dict[str, Any]) -> Tuple[str, str, List[Dict[str, Any]], Dict[str, Any], Decimal]:
    """
    Extrait (user_id, clerk_id, order_items, shipping_address, total) depuis
    payment_intent.metadata. Soulève ValueError si une donnée est absente ou illisible.
    """
    meta = meta or {}
    user_id = str(meta.get("userId") or "")
    if not user_id:
        raise ValueError("metadata.userId manquant")
    items = unpack_json(meta, "orderItems")
    if not isinstance(items, list) or not items:
        raise ValueError("metadata.orderItems vide ou invalide")
    shipping_address = unpack_json(meta, "shippingAddress")
    try:
        total = Decimal(str(meta.get("totalPrice")))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"metadata.totalPrice invalide: {meta.get('totalPrice')!r}") from e
    return user_id, str(meta.get("clerkId") or ""), items, shipping_address or {}, total
