"""Couche service du domaine Utilisateurs: adresses et wishlist.
Règles métier:
- Au plus une adresse par défaut: passer isDefault=True désactive d’abord toutes les autres.
- La wishlist est un ensemble: ajout d’un doublon -> Conflict, retrait d’un absent -> NotFound.
"""
from typing import Any, Dict, List, Optional
import logging

from pydantic import BaseModel, ConfigDict, Field

from storefront.app_setup.exceptions import Conflict, NotFound, ValidationFailed
from storefront.products import repository as products_repo
from . import repository

logger = logging.getLogger(__name__)

# Champs API (camelCase) -> colonnes addresses
ADDRESS_FIELDS = {
    "label": "label",
    "fullName": "full_name",
    "streetAddress": "street_address",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "phoneNumber": "phone_number",
    "isDefault": "is_default",
}
REQUIRED_ADDRESS_FIELDS = ("fullName", "streetAddress", "city", "state", "zipCode")

class AddressIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    label: Optional[str] = None
    fullName: Optional[str] = None
    streetAddress: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None
    phoneNumber: Optional[str] = None
    isDefault: Optional[bool] = None

class WishlistIn(BaseModel):
    productId: str = Field(min_length=1)

def address_out(row: Dict[str, Any]) -> Dict[str, Any]:
    out = {"id": str(row.get("id"))}
    for api_name, column in ADDRESS_FIELDS.items():
        out[api_name] = row.get(column)
    out["isDefault"] = bool(row.get("is_default"))
    return out

def _to_columns(data: AddressIn) -> Dict[str, Any]:
    values = data.model_dump()
    return {
        column: values[api_name]
        for api_name, column in ADDRESS_FIELDS.items()
        if values.get(api_name) not in (None, "")
    }

def _addresses(user_id: str) -> List[Dict[str, Any]]:
    return [address_out(r) for r in repository.list_addresses(user_id)]

# --- Adresses ---

def list_addresses(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return _addresses(user["id"])

def add_address(user: Dict[str, Any], data: AddressIn) -> List[Dict[str, Any]]:
    values = data.model_dump()
    missing = [f for f in REQUIRED_ADDRESS_FIELDS if not (values.get(f) or "").strip()]
    if missing:
        raise ValidationFailed("Champs d'adresse obligatoires manquants: " + ", ".join(missing))

    columns = _to_columns(data)
    columns["is_default"] = bool(data.isDefault)
    if columns["is_default"]:
        repository.clear_default_addresses(user["id"])
    repository.insert_address(user["id"], columns)
    return _addresses(user["id"])

def update_address(user: Dict[str, Any], address_id: str, data: AddressIn) -> List[Dict[str, Any]]:
    if not repository.get_address(user["id"], address_id):
        raise NotFound("Adresse introuvable")

    # Mise à jour partielle: les champs vides conservent la valeur existante
    columns = _to_columns(data)
    if data.isDefault is not None:
        columns["is_default"] = data.isDefault
    if data.isDefault:
        repository.clear_default_addresses(user["id"])
    if columns:
        repository.update_address(user["id"], address_id, columns)
    return _addresses(user["id"])

def delete_address(user: Dict[str, Any], address_id: str) -> List[Dict[str, Any]]:
    if not repository.delete_address(user["id"], address_id):
        raise NotFound("Adresse introuvable")
    return _addresses(user["id"])

# --- Wishlist ---

def wishlist_ids(user: Dict[str, Any]) -> List[str]:
    return repository.list_wishlist_product_ids(user["id"])

def get_wishlist(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Wishlist peuplée avec les produits (ordre d’ajout, produits supprimés ignorés)."""
    ids = wishlist_ids(user)
    products = products_repo.get_products_map(ids)
    return [products[pid] for pid in ids if pid in products]

def add_to_wishlist(user: Dict[str, Any], product_id: str) -> List[str]:
    if product_id in wishlist_ids(user):
        raise Conflict("Produit déjà dans la wishlist")
    if not products_repo.get_product(product_id):
        raise NotFound("Produit introuvable")
    if not repository.insert_wishlist_item(user["id"], product_id):
        raise Conflict("Produit déjà dans la wishlist")
    return wishlist_ids(user)

def remove_from_wishlist(user: Dict[str, Any], product_id: str) -> List[str]:
    if product_id not in wishlist_ids(user):
        raise NotFound("Produit absent de la wishlist")
    repository.delete_wishlist_item(user["id"], product_id)
    return wishlist_ids(user)
