import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request, Depends
from pydantic import BaseModel, ConfigDict
from starlette.concurrency import run_in_threadpool

from storefront.utils.security import require_user
from storefront.utils.rate_limit import optional_rate_limit
from storefront.payments import service as payments_service
from storefront.payments.stripe_client import StripeGateway, get_stripe_gateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/payment", tags=["Payments API"])

class CartLineIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    productId: str
    quantity: Any = None

class CreateIntentIn(BaseModel):
    cartItems: List[CartLineIn] = []
    shippingAddress: Optional[Dict[str, Any]] = None

# module storefront.payments.views
@router.post("/create-intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_payment_intent(
    payload: CreateIntentIn,
    user: Dict[str, Any] = Depends(require_user),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """
    Crée un PaymentIntent Stripe pour le panier de l’utilisateur authentifié.
    - Entrée JSON: { "cartItems": [ { "productId": "...", "quantity": 2 } ], "shippingAddress": {...} }
    - Sécurité: require_user + rate limit (10 req / 60s)
    - Prix recalculés côté serveur; le front ne transmet que des identifiants et quantités
    - Réponse: { "clientSecret": "..." }
    - Erreurs: 400 panier/adresse/stock/total invalide, 404 produit introuvable
    """
    client_secret = payments_service.create_payment_intent(
        cart_items=[line.model_dump() for line in payload.cartItems],
        shipping_address=payload.shippingAddress,
        user=user,
        gateway=gateway,
    )
    return {"clientSecret": client_secret}

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request, gateway: StripeGateway = Depends(get_stripe_gateway)):
    """
    Webhook Stripe: consomme payment_intent.succeeded pour créer la commande.
    - Pas de session utilisateur: la signature (stripe-signature) est la seule authentification
    - Corps brut requis pour la vérification HMAC
    - Réponse: {"received": true}; 400 uniquement si la signature est invalide
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    return await run_in_threadpool(payments_service.handle_webhook, payload, sig_header, gateway)
