"""
Modèles du panier (côté client): catalogue en entrée et lignes du panier.
"""
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

# module storefront.cart.models
class Variant(BaseModel):
    """Déclinaison vendable d'un produit (ex: « 2-Pack »)."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Decimal = Field(gt=0)
    quantity: int = Field(default=1, ge=1)  # nombre d'unités par pack
    original_price: Optional[Decimal] = None
    savings: Optional[Decimal] = None


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image: Optional[str] = None
    description: Optional[str] = None


def item_key(product_id: str, variant_id: str) -> str:
    """Clé composée produit+variante, unique dans le panier."""
    return f"{product_id}-{variant_id}"


class CartItem(BaseModel):
    """
    Ligne du panier.
    - Prix, économies et taille de pack sont figés au moment de l'ajout.
    - quantity >= 1: une quantité nulle équivaut à retirer la ligne.
    """
    id: str
    product_id: str
    variant_id: str
    name: str
    variant_name: str
    price: Decimal = Field(gt=0)
    pack_quantity: int = Field(default=1, ge=1)
    quantity: int = Field(ge=1)
    original_price: Optional[Decimal] = None
    savings: Optional[Decimal] = None
    image: Optional[str] = None

    @classmethod
    def snapshot(cls, product: Product, variant: Variant, quantity: int) -> "CartItem":
        return cls(
            id=item_key(product.id, variant.id),
            product_id=product.id,
            variant_id=variant.id,
            name=product.name,
            variant_name=variant.name,
            price=variant.price,
            pack_quantity=variant.quantity,
            quantity=quantity,
            original_price=variant.original_price,
            savings=variant.savings,
            image=product.image,
        )
