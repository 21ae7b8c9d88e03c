"""
Store du panier: conteneur d'état côté client.

- Mutations: add_item, update_quantity, remove_item, clear_cart (synchrones, atomiques).
- Persistance: après chaque mutation, l'état complet est écrit dans le stockage local.
- Restauration: à l'initialisation, un instantané valide est rechargé tel quel;
  un instantané corrompu est ignoré (log d'erreur) et le panier démarre vide.
- Agrégats dérivés, jamais stockés: item_count, total_units, subtotal, total_savings.
- Pas de singleton: le store est créé à la racine de l'application et passé aux composants.
"""
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from storefront import config
from .models import CartItem, Product, Variant, item_key
from .storage import CartStorage, MemoryStorage

logger = logging.getLogger(__name__)

# module storefront.cart.store
class CartStore:
    def __init__(self, storage: Optional[CartStorage] = None, storage_key: Optional[str] = None):
        self.storage = storage if storage is not None else MemoryStorage()
        self.storage_key = storage_key or config.CART_STORAGE_KEY
        self._items: List[CartItem] = self._load()

    # --- Persistance ---
    def _load(self) -> List[CartItem]:
        raw = self.storage.get_item(self.storage_key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            return [CartItem.model_validate(it) for it in (data.get("items") or [])]
        except (ValueError, AttributeError, TypeError, ValidationError) as e:
            logger.error(f"Erreur de chargement du panier ({self.storage_key}): {e}")
            return []

    def _persist(self) -> None:
        # Toujours après la mutation en mémoire qu'elle décrit
        snapshot = {"items": [it.model_dump(mode="json") for it in self._items]}
        try:
            self.storage.set_item(self.storage_key, json.dumps(snapshot))
        except OSError as e:
            logger.error(f"Erreur de sauvegarde du panier ({self.storage_key}): {e}")

    # --- Lecture ---
    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    def get_item(self, key: str) -> Optional[CartItem]:
        return next((it for it in self._items if it.id == key), None)

    @property
    def item_count(self) -> int:
        return sum(it.quantity for it in self._items)

    @property
    def total_units(self) -> int:
        return sum(it.quantity * it.pack_quantity for it in self._items)

    @property
    def subtotal(self) -> Decimal:
        return sum((it.price * it.quantity for it in self._items), Decimal("0"))

    @property
    def total_savings(self) -> Decimal:
        return sum((it.savings * it.quantity for it in self._items if it.savings), Decimal("0"))

    # --- Mutations ---
    def add_item(self, product: Product, variant: Variant, quantity: int = 1) -> CartItem:
        """
        Ajoute une variante au panier.
        - Clé déjà présente: incrémente la quantité (pas de doublon).
        - Sinon: nouvelle ligne avec un instantané du prix au moment de l'ajout.
        """
        if quantity < 1:
            raise ValueError("quantity must be >= 1")
        key = item_key(product.id, variant.id)
        existing = self.get_item(key)
        if existing:
            item = existing.model_copy(update={"quantity": existing.quantity + quantity})
            self._items = [item if it.id == key else it for it in self._items]
        else:
            item = CartItem.snapshot(product, variant, quantity)
            self._items = [*self._items, item]
        self._persist()
        return item

    def update_quantity(self, key: str, quantity: int) -> None:
        """Fixe la quantité exacte; quantity <= 0 équivaut à remove_item."""
        if quantity <= 0:
            self.remove_item(key)
            return
        self._items = [
            it.model_copy(update={"quantity": quantity}) if it.id == key else it
            for it in self._items
        ]
        self._persist()

    def remove_item(self, key: str) -> None:
        self._items = [it for it in self._items if it.id != key]
        self._persist()

    def clear_cart(self) -> None:
        # Idempotent: vider un panier vide ne change rien
        self._items = []
        self._persist()

    # --- Checkout ---
    def to_checkout_items(self) -> List[Dict[str, Any]]:
        """Lignes au format attendu par POST /api/create-checkout-session."""
        lines = []
        for it in self._items:
            plural = "s" if it.pack_quantity > 1 else ""
            lines.append({
                "name": f"{it.name} - {it.variant_name}",
                "price": float(it.price),
                "quantity": it.quantity,
                "image": it.image,
                "description": f"{it.pack_quantity} tube{plural} per pack",
            })
        return lines
