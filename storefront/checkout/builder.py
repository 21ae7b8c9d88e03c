"""
Construction de la session Checkout à partir d'une requête validée.

- Montants: prix décimal -> unités mineures entières (price * 100, arrondi ROUND_HALF_EVEN).
- Redirections: succès avec le placeholder {CHECKOUT_SESSION_ID}, annulation vers le checkout.
- Taxes automatiques, livraison offerte (3-5 jours ouvrés), pays autorisés, téléphone.
- Dégradation: si la 1re création échoue pour une raison liée aux taxes, un seul retry sans taxes.
  Une erreur réseau/timeout donne aussi droit à un seul retry (mêmes paramètres).
  Toute autre erreur remonte immédiatement.
"""
import logging
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from storefront import config
from . import stripe_client
from .errors import GatewayError
from .validation import ValidatedLineItem, ValidatedRequest

logger = logging.getLogger(__name__)

# module storefront.checkout.builder
class SessionHandle(BaseModel):
    """Seules données renvoyées au navigateur."""
    id: str
    url: str


def to_minor_units(price: Decimal) -> int:
    return int((price * 100).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))

def _absolute_image(image: Optional[str]) -> Optional[str]:
    if not image:
        return None
    if image.startswith(("http://", "https://")):
        return image
    return f"{config.SITE_ORIGIN}/{image.lstrip('/')}"

def to_line_item(item: ValidatedLineItem) -> Dict[str, Any]:
    image = _absolute_image(item.image)
    return {
        "price_data": {
            "currency": config.CHECKOUT_CURRENCY,
            "product_data": {
                "name": item.name,
                "images": [image] if image else [],
                "description": (item.description or config.DEFAULT_ITEM_DESCRIPTION)[:200],
            },
            "unit_amount": to_minor_units(item.price),
        },
        "quantity": item.quantity,
    }

def shipping_options() -> list:
    return [
        {
            "shipping_rate_data": {
                "type": "fixed_amount",
                "fixed_amount": {"amount": 0, "currency": config.CHECKOUT_CURRENCY},
                "display_name": "Free Standard Shipping",
                "delivery_estimate": {
                    "minimum": {"unit": "business_day", "value": config.SHIPPING_MIN_DAYS},
                    "maximum": {"unit": "business_day", "value": config.SHIPPING_MAX_DAYS},
                },
            },
        }
    ]

def make_metadata(request: ValidatedRequest) -> Dict[str, str]:
    """Métadonnées renvoyées telles quelles par Stripe dans l'événement webhook (valeurs str)."""
    customer = request.customer
    return {
        "source": config.METADATA_SOURCE,
        "deliveryInstructions": customer.delivery_instructions or "",
        "marketingOptIn": "true" if customer.marketing_opt_in else "false",
    }

def build_session_params(request: ValidatedRequest, origin: str, automatic_tax: bool = True) -> Dict[str, Any]:
    """Paramètres complets de stripe.checkout.Session.create (fonction pure)."""
    origin = origin.rstrip("/")
    params: Dict[str, Any] = {
        "payment_method_types": ["card"],
        "line_items": [to_line_item(it) for it in request.items],
        "mode": "payment",
        "success_url": f"{origin}{config.CHECKOUT_SUCCESS_PATH}?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{origin}{config.CHECKOUT_CANCEL_PATH}",
        "shipping_options": shipping_options(),
        "billing_address_collection": "required",
        "shipping_address_collection": {"allowed_countries": list(config.SHIPPING_ALLOWED_COUNTRIES)},
        "phone_number_collection": {"enabled": True},
        "customer_creation": "always",
        "metadata": make_metadata(request),
    }
    if automatic_tax:
        params["automatic_tax"] = {"enabled": True}
    if request.customer.email:
        params["customer_email"] = request.customer.email
    return params

def _retry_params(exc: Exception, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if "automatic_tax" in params and stripe_client.is_tax_capability_error(exc):
        logger.warning("checkout.session tax unavailable code=%s, retry sans automatic_tax", getattr(exc, "code", None))
        return {k: v for k, v in params.items() if k != "automatic_tax"}
    if stripe_client.is_transient_error(exc):
        logger.warning("checkout.session erreur réseau/timeout, nouvel essai unique")
        return params
    return None

def create_checkout_session(
    request: ValidatedRequest,
    origin: str,
    create: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
) -> SessionHandle:
    """
    Crée la session auprès de Stripe (au plus un retry) et retourne {id, url}.
    Lève GatewayError si la session n'a pas pu être créée.
    """
    create = create or stripe_client.create_session
    params = build_session_params(request, origin, automatic_tax=True)
    try:
        session = create(params)
    except Exception as first:
        retry = _retry_params(first, params)
        if retry is None:
            raise GatewayError("Création de session refusée") from first
        try:
            session = create(retry)
        except Exception as second:
            raise GatewayError("Création de session refusée après retry") from second

    if not session.get("id") or not session.get("url"):
        raise GatewayError("Session Stripe invalide")
    return SessionHandle(id=session["id"], url=session["url"])
