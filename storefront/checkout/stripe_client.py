"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
- Timeout borné sur chaque appel (STRIPE_TIMEOUT_SECONDS), pas de retry implicite du SDK.
- Vérification de signature des webhooks (verify-before-read).
"""
import json
from typing import Any, Dict, List, Optional

import stripe

from storefront import config
from .errors import WebhookVerificationError

# module storefront.checkout.stripe_client
def require_stripe() -> stripe:
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    if config.STRIPE_SECRET_KEY:
        stripe.api_key = config.STRIPE_SECRET_KEY
    stripe.max_network_retries = 0
    if not isinstance(getattr(stripe, "default_http_client", None), stripe.RequestsClient):
        stripe.default_http_client = stripe.RequestsClient(timeout=config.STRIPE_TIMEOUT_SECONDS)
    return stripe

def create_session(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout à partir des paramètres complets.
    Retour: {"id": "cs_...", "url": "https://checkout.stripe.com/..."}
    """
    require_stripe()
    session = stripe.checkout.Session.create(**params)
    return {"id": session["id"], "url": session["url"]}

def list_line_items(session_id: str) -> List[Dict[str, Any]]:
    """
    Lignes d'une session Checkout, normalisées en {description, quantity, amount_total}.
    amount_total est en unités mineures (cents).
    """
    require_stripe()
    res = stripe.checkout.Session.list_line_items(
        session_id,
        limit=100,
        expand=["data.price.product"],
    )
    return [
        {
            "description": item["description"],
            "quantity": item["quantity"],
            "amount_total": item["amount_total"],
        }
        for item in res["data"]
    ]

def construct_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """
    Valide la signature Stripe puis décode l'événement.
    - Lève WebhookVerificationError si le secret/l'en-tête manque, si la signature
      ne correspond pas ou si le payload est illisible.
    Retour: l'événement sous forme de dict simple, lu seulement après vérification.
    """
    if not config.STRIPE_WEBHOOK_SECRET:
        raise WebhookVerificationError("STRIPE_WEBHOOK_SECRET manquant")
    if not sig_header:
        raise WebhookVerificationError("En-tête Stripe-Signature manquant")
    try:
        stripe.Webhook.construct_event(payload, sig_header, config.STRIPE_WEBHOOK_SECRET)
        event = json.loads(payload)
    except (ValueError, AttributeError, TypeError, stripe.SignatureVerificationError) as e:
        raise WebhookVerificationError(str(e)) from e
    if not isinstance(event, dict):
        raise WebhookVerificationError("Payload webhook invalide")
    return event

def is_tax_capability_error(exc: Exception) -> bool:
    """
    Erreur liée au calcul automatique des taxes (Stripe Tax non activé, adresse d'origine absente...).
    Classée par paramètre/code Stripe, puis par message en dernier recours.
    """
    if not isinstance(exc, stripe.InvalidRequestError):
        return False
    param = (getattr(exc, "param", None) or "").lower()
    code = (getattr(exc, "code", None) or "").lower()
    message = (getattr(exc, "user_message", None) or str(exc) or "").lower()
    return param.startswith("automatic_tax") or "tax" in code or "stripe tax" in message

def is_transient_error(exc: Exception) -> bool:
    """Timeout ou erreur réseau vers Stripe."""
    return isinstance(exc, stripe.APIConnectionError)
