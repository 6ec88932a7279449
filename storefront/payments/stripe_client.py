"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
La passerelle est construite explicitement (lifespan) puis injectée dans les vues via get_stripe_gateway;
l'orchestrateur de paiement ne touche jamais directement au module stripe.
"""
import json
import logging
from typing import Any, Dict, Optional

import stripe
from fastapi import Request

from storefront import config
from storefront.app_setup.exceptions import SignatureInvalid

logger = logging.getLogger(__name__)

# module storefront.payments.stripe_client
class StripeGateway:
    """
    Opérations Stripe utilisées par le checkout.
    - un StripeClient propre à l'instance (clé, transport, retries): aucun réglage global du module stripe
    - timeout réseau borné, aucun retry initié par le SDK: les retries sont ceux des webhooks Stripe
    """

    def __init__(self, api_key: str, webhook_secret: str, timeout: float = 20.0):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self._client: Optional[stripe.StripeClient] = None

    @property
    def client(self) -> stripe.StripeClient:
        # Construit au premier appel API: le démarrage et les webhooks n'exigent pas la clé secrète
        if self._client is None:
            self._client = stripe.StripeClient(
                self.api_key,
                http_client=stripe.RequestsClient(timeout=self.timeout),
                max_network_retries=0,
            )
        return self._client

    def create_customer(self, *, email: Optional[str], name: Optional[str], metadata: Dict[str, str], idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        """
        Crée un customer Stripe. Retour: {"id": "cus_..."}
        """
        params: Dict[str, Any] = {"metadata": metadata}
        if email:
            params["email"] = email
        if name:
            params["name"] = name
        options = {"idempotency_key": idempotency_key} if idempotency_key else {}
        customer = self.client.customers.create(params=params, options=options)
        return {"id": customer.id}

    def create_payment_intent(self, *, amount: int, currency: str, customer_id: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        """
        Crée un PaymentIntent (montant en plus petite unité monétaire).
        Retour: {"id": "pi_...", "client_secret": "...", "amount": <int>}
        """
        intent = self.client.payment_intents.create(params={
            "amount": amount,
            "currency": currency,
            "customer": customer_id,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata,
        })
        return {"id": intent.id, "client_secret": intent.client_secret, "amount": intent.amount}

    def construct_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Valide la signature Stripe-Signature (HMAC-SHA256, tolérance 300s) puis décode l'événement.
        Retour: l'événement en dict. Soulève SignatureInvalid si secret/en-tête absent ou signature invalide.
        """
        if not self.webhook_secret:
            logger.error("payments.stripe_client STRIPE_WEBHOOK_SECRET manquant, webhook refusé")
            raise SignatureInvalid("Webhook non configuré")
        if not sig_header:
            raise SignatureInvalid("En-tête stripe-signature manquant")
        try:
            text = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(text, sig_header, self.webhook_secret, stripe.Webhook.DEFAULT_TOLERANCE)
            return json.loads(text)
        except (stripe.SignatureVerificationError, UnicodeDecodeError, ValueError) as e:
            logger.warning("payments.stripe_client signature webhook refusée: %s", e)
            raise SignatureInvalid(f"Webhook Error: {e}")

def build_stripe_gateway() -> StripeGateway:
    return StripeGateway(
        api_key=config.STRIPE_SECRET_KEY,
        webhook_secret=config.STRIPE_WEBHOOK_SECRET,
        timeout=config.STRIPE_TIMEOUT_SECONDS,
    )

def get_stripe_gateway(request: Request) -> StripeGateway:
    """Dépendance FastAPI: passerelle construite au démarrage (app.state)."""
    gateway = getattr(request.app.state, "stripe_gateway", None)
    if gateway is None:
        gateway = build_stripe_gateway()
        request.app.state.stripe_gateway = gateway
    return gateway
