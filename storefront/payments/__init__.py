"""
Module 'payments' (feature-first): point d'entrée public.
Réunit calcul des prix, metadata Stripe, passerelle Stripe, repository BD et services.
"""

from .pricing import aggregate_quantities, price_from_product, validate_items, compute_totals, to_minor_units
from .metadata import make_metadata, extract_metadata
from .stripe_client import StripeGateway, build_stripe_gateway, get_stripe_gateway
from .repository import find_order_by_payment_id, insert_order
from .service import create_payment_intent, handle_webhook, reconcile_payment_intent

__all__ = [
    # pricing
    "aggregate_quantities",
    "price_from_product",
    "validate_items",
    "compute_totals",
    "to_minor_units",
    # metadata
    "make_metadata",
    "extract_metadata",
    # stripe
    "StripeGateway",
    "build_stripe_gateway",
    "get_stripe_gateway",
    # repository
    "find_order_by_payment_id",
    "insert_order",
    # services
    "create_payment_intent",
    "handle_webhook",
    "reconcile_payment_intent",
]
