"""
Cas d'usage 'payments': orchestre pricing, metadata, passerelle Stripe et repository.

Flux d'un checkout:
  PaymentIntent créé -> paiement côté Stripe -> webhook payment_intent.succeeded
  -> commande matérialisée (une seule fois par PaymentIntent) -> stock décrémenté
"""
from typing import Any, Dict, List, Optional
import logging

from storefront import config
from storefront.app_setup.exceptions import InvalidTotal, ValidationFailed
from storefront.products import repository as products_repo
from storefront.users import repository as users_repo
from storefront.users.service import REQUIRED_ADDRESS_FIELDS
from . import metadata as meta
from . import pricing
from . import repository
from .stripe_client import StripeGateway

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"

def _check_shipping_address(shipping_address: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    address = shipping_address or {}
    missing = [f for f in REQUIRED_ADDRESS_FIELDS if not str(address.get(f) or "").strip()]
    if missing:
        raise ValidationFailed("Champs d'adresse obligatoires manquants: " + ", ".join(missing))
    return address

def resolve_customer_id(user: Dict[str, Any], gateway: StripeGateway) -> str:
    """
    Customer Stripe de l'utilisateur:
    - réutilise users.stripe_customer_id s'il existe
    - sinon le crée puis l'enregistre (écriture unique, conditionnelle sur NULL)
    """
    if user.get("stripe_customer_id"):
        return user["stripe_customer_id"]

    customer = gateway.create_customer(
        email=user.get("email"),
        name=user.get("name"),
        metadata={"clerkId": str(user.get("clerk_id") or ""), "userId": str(user["id"])},
        idempotency_key=f"customer-create-{user['id']}",
    )
    if not users_repo.set_stripe_customer_id(user["id"], customer["id"]):
        # Une requête concurrente a déjà enregistré un customer: on garde celui en base
        profile = users_repo.get_user_by_clerk_id(user.get("clerk_id"))
        stored = (profile or {}).get("stripe_customer_id")
        if stored:
            return stored
    return customer["id"]

def create_payment_intent(
    *,
    cart_items: List[Dict[str, Any]],
    shipping_address: Optional[Dict[str, Any]],
    user: Dict[str, Any],
    gateway: StripeGateway,
) -> str:
    """
    Prépare le paiement d'un panier et retourne le client_secret du PaymentIntent.
    Toute la validation (panier, adresse, catalogue, stock, total) précède le premier appel Stripe.
    """
    quantities = pricing.aggregate_quantities(cart_items)
    address = _check_shipping_address(shipping_address)
    products = products_repo.get_products_map(list(quantities.keys()))
    validated_items, subtotal = pricing.validate_items(products, quantities)

    totals = pricing.compute_totals(subtotal)
    total = totals["total"]
    if total <= 0:
        raise InvalidTotal()
    metadata = meta.make_metadata(user, validated_items, address, total)

    customer_id = resolve_customer_id(user, gateway)
    amount = pricing.to_minor_units(total)
    intent = gateway.create_payment_intent(
        amount=amount,
        currency=config.CURRENCY,
        customer_id=customer_id,
        metadata=metadata,
    )
    logger.info("payments.create_intent user_id=%s intent=%s amount=%s items=%s", user["id"], intent.get("id"), amount, len(validated_items))
    return intent["client_secret"]

def decrement_stock(order_items: List[Dict[str, Any]]) -> int:
    """
    Décrémente le stock de chaque produit acheté (décrément atomique par produit).
    Pas de transaction sur l'ensemble: un échec est loggé et la boucle continue.
    Retour: nombre de produits effectivement mis à jour.
    """
    updated = 0
    for item in order_items:
        product_id = str(item.get("product") or "")
        qty = int(item.get("quantity") or 0)
        if not product_id or qty <= 0:
            continue
        try:
            remaining = products_repo.decrement_stock(product_id, qty)
        except Exception:
            logger.exception("payments.decrement_stock échec product=%s qty=%s", product_id, qty)
            continue
        if remaining is None:
            logger.warning("payments.decrement_stock produit introuvable product=%s", product_id)
            continue
        updated += 1
    return updated

def reconcile_payment_intent(payment_intent: Dict[str, Any]) -> Optional[dict]:
    """
    Matérialise la commande d'un PaymentIntent réussi.
    - Idempotent: aucune création (ni décrément) si une commande existe déjà pour ce paiement
    - Retour: la commande créée, ou None si elle existait déjà
    """
    payment_id = str(payment_intent.get("id") or "")
    if not payment_id:
        raise ValueError("payment_intent.id manquant")

    if repository.find_order_by_payment_id(payment_id):
        logger.info("payments.webhook commande déjà existante payment=%s", payment_id)
        return None

    user_id, clerk_id, order_items, shipping_address, total = meta.extract_metadata(payment_intent.get("metadata") or {})
    order = repository.insert_order({
        "user_id": user_id,
        "clerk_id": clerk_id,
        "order_items": order_items,
        "shipping_address": shipping_address,
        "payment_result": {"id": payment_id, "status": "succeeded"},
        "total_price": float(total),
        "status": "pending",
    })
    if order is None:
        # Livraison concurrente: l'autre a créé la commande et décrémente le stock
        logger.info("payments.webhook commande créée en parallèle payment=%s", payment_id)
        return None

    decrement_stock(order_items)
    logger.info("payments.webhook commande créée order=%s payment=%s", order.get("id"), payment_id)
    return order

def handle_webhook(raw_body: bytes, signature_header: Optional[str], gateway: StripeGateway) -> Dict[str, Any]:
    """
    Point d'entrée du webhook Stripe.
    - Signature invalide: SignatureInvalid (400), seule erreur visible par Stripe
    - payment_intent.succeeded: réconciliation en commande
    - Autres événements: acquittés sans action
    Après vérification de la signature, les erreurs de traitement sont loggées et
    l'événement est tout de même acquitté: le paiement est déjà encaissé côté Stripe.
    """
    event = gateway.construct_event(raw_body, signature_header)
    event_type = (event or {}).get("type")
    if event_type != PAYMENT_SUCCEEDED:
        logger.debug("payments.webhook événement ignoré type=%s", event_type)
        return {"received": True}

    payment_intent = ((event.get("data") or {}).get("object")) or {}
    logger.info("payments.webhook paiement réussi payment=%s", payment_intent.get("id"))
    try:
        reconcile_payment_intent(payment_intent)
    except Exception:
        logger.exception("payments.webhook erreur de création de commande payment=%s", payment_intent.get("id"))
    return {"received": True}
