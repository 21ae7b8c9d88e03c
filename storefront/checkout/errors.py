"""
Exceptions métier du checkout.
"""
from typing import Any, Dict, Optional

# module storefront.checkout.errors
class CheckoutValidationError(Exception):
    """
    Requête de session rejetée (faute du client -> 400).
    - category: famille du champ rejeté (items, name, price, quantity, image, description, customer)
    - index: position de la ligne fautive, si applicable
    """
    def __init__(self, category: str, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.category = category
        self.message = message
        self.index = index

    def to_details(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {"field": self.category}
        if self.index is not None:
            details["index"] = self.index
        return details


class GatewayError(Exception):
    """Échec côté passerelle de paiement (-> 500, message générique côté client)."""


class WebhookVerificationError(Exception):
    """Webhook rejeté avant lecture: secret absent, en-tête manquant, signature ou payload invalide (-> 400)."""
