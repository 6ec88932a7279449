"""
Cas d'usage catalogue: lecture publique et écriture admin des produits.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from storefront.app_setup.exceptions import NotFound, ValidationFailed
from . import repository

MAX_IMAGES = 3

class ProductIn(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(gt=0)
    stock: int = Field(ge=0)
    category: str = Field(min_length=1)
    images: List[str] = Field(default_factory=list)

class ProductPatch(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    stock: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)
    images: Optional[List[str]] = None

def _check_images(images: Optional[List[str]]) -> None:
    if images is not None and len(images) > MAX_IMAGES:
        raise ValidationFailed(f"Maximum {MAX_IMAGES} images autorisées")

def list_products() -> List[dict]:
    return repository.list_products()

def get_product(product_id: str) -> dict:
    product = repository.get_product(product_id)
    if not product:
        raise NotFound("Produit introuvable")
    return product

def create_product(data: ProductIn) -> dict:
    _check_images(data.images)
    if not data.images:
        raise ValidationFailed("Au moins une image est requise")
    return repository.create_product(data.model_dump())

def update_product(product_id: str, data: ProductPatch) -> dict:
    _check_images(data.images)
    changes: Dict[str, Any] = data.model_dump(exclude_none=True)
    if not repository.get_product(product_id):
        raise NotFound("Produit introuvable")
    if not changes:
        return repository.get_product(product_id)
    updated = repository.update_product(product_id, changes)
    if not updated:
        raise NotFound("Produit introuvable")
    return updated

def delete_product(product_id: str) -> None:
    if not repository.delete_product(product_id):
        raise NotFound("Produit introuvable")
