"""
Flux checkout côté client.
- start_checkout: envoie le panier à l'endpoint de session, vide le panier une fois
  l'URL de redirection reçue, et retourne cette URL.
- confirm_success: appelé par la page de succès, vide le panier (idempotent).
"""
import logging
from typing import Any, Dict, Optional

import httpx

from .store import CartStore

logger = logging.getLogger(__name__)

CHECKOUT_ENDPOINT = "/api/create-checkout-session"
GENERIC_ERROR = "Something went wrong. Please try again."

# module storefront.cart.checkout
class CheckoutFailed(Exception):
    """Échec du démarrage du checkout; message générique affichable tel quel."""
    def __init__(self, message: str = GENERIC_ERROR):
        super().__init__(message)
        self.message = message


class CheckoutClient:
    def __init__(self, base_url: str, client: Optional[httpx.Client] = None, timeout: float = 20.0):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def start_checkout(self, cart: CartStore, customer: Optional[Dict[str, Any]] = None) -> str:
        if not cart.items:
            raise CheckoutFailed("Your cart is empty.")
        body: Dict[str, Any] = {"items": cart.to_checkout_items()}
        if customer:
            body["customerData"] = customer
        try:
            res = self._client.post(
                f"{self.base_url}{CHECKOUT_ENDPOINT}",
                json=body,
                headers={"Origin": self.base_url},
            )
        except httpx.HTTPError as e:
            logger.error(f"Erreur réseau checkout: {e}")
            raise CheckoutFailed() from e

        if res.status_code != 200:
            logger.warning("checkout.start status=%s", res.status_code)
            raise CheckoutFailed()
        try:
            url = (res.json() or {}).get("url")
        except ValueError:
            url = None
        if not url:
            raise CheckoutFailed("No checkout URL received")

        # Panier vidé avant la redirection vers la page de paiement
        cart.clear_cart()
        return url


def confirm_success(cart: CartStore) -> None:
    cart.clear_cart()
