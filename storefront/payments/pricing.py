"""
Logique panier/prix pure (pas de Stripe, pas de DB).
Les montants sont calculés en Decimal à partir des prix serveur uniquement.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Tuple

from storefront import config
from storefront.app_setup.exceptions import InsufficientStock, NotFound, ValidationFailed

CENT = Decimal("0.01")

def shipping_fee() -> Decimal:
    return Decimal(config.SHIPPING_FLAT_FEE)

def tax_rate() -> Decimal:
    return Decimal(config.TAX_RATE)

# module storefront.payments.pricing
def aggregate_quantities(items: List[Dict[str, Any]]) -> Dict[str, int]:
    """
    Agrège un panier brut [{productId, quantity}, ...] en {product_id: total_quantity}.
    - Les doublons sont fusionnés (le contrôle de stock porte sur la quantité totale).
    - Soulève ValidationFailed si le panier est vide, si un id manque ou si une quantité n’est pas un entier > 0.
    """
    if not items:
        raise ValidationFailed("Panier vide")
    quantities: Dict[str, int] = {}
    for it in items:
        product_id = str(it.get("productId") or "").strip()
        if not product_id:
            raise ValidationFailed("Article sans identifiant produit")
        qty = it.get("quantity")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationFailed(f"Quantité invalide pour le produit {product_id}")
        quantities[product_id] = quantities.get(product_id, 0) + qty
    return quantities

def price_from_product(product: Dict[str, Any]) -> Decimal:
    """
    Prix d’un produit en Decimal.
    - Autorise product.get("price") à être str|float|int.
    - Retourne Decimal(0) si parsing impossible.
    """
    try:
        return Decimal(str(product.get("price") or 0))
    except (InvalidOperation, ValueError):
        return Decimal(0)

def validate_items(products_by_id: Dict[str, Dict[str, Any]], quantities: Dict[str, int]) -> Tuple[List[Dict[str, Any]], Decimal]:
    """
    Valide chaque ligne contre le catalogue et construit l’instantané de commande.
    - NotFound si un produit n’existe pas, InsufficientStock si stock < quantité.
    - Retour: (articles validés [{product, name, price, quantity, image}], sous-total)
    """
    validated: List[Dict[str, Any]] = []
    subtotal = Decimal(0)
    for product_id, qty in quantities.items():
        product = products_by_id.get(product_id)
        if not product:
            raise NotFound(f"Produit {product_id} introuvable")
        if int(product.get("stock") or 0) < qty:
            raise InsufficientStock(product.get("name") or product_id)

        price = price_from_product(product)
        subtotal += price * qty
        images = product.get("images") or []
        validated.append({
            "product": str(product.get("id") or product_id),
            "name": product.get("name") or "",
            "price": float(price),
            "quantity": qty,
            "image": images[0] if images else None,
        })
    return validated, subtotal

def compute_totals(subtotal: Decimal) -> Dict[str, Decimal]:
    """
    total = sous-total + livraison forfaitaire + taxe (TAX_RATE * sous-total).
    Exemple: 40 -> taxe 3.20, livraison 10 -> 53.20
    """
    tax = subtotal * tax_rate()
    shipping = shipping_fee()
    return {
        "subtotal": subtotal,
        "shipping": shipping,
        "tax": tax,
        "total": subtotal + shipping + tax,
    }

def to_minor_units(total: Decimal) -> int:
    """Montant Stripe en centimes (arrondi commercial): 53.20 -> 5320."""
    return int((total * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))

def format_amount(total: Decimal) -> str:
    return str(total.quantize(CENT, rounding=ROUND_HALF_UP))
