import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from storefront import config
from storefront.utils.rate_limit import optional_rate_limit
from . import builder
from .errors import CheckoutValidationError, GatewayError
from .validation import validate_session_request

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Checkout API"])

GENERIC_GATEWAY_ERROR = "Payment processing error. Please try again."

def request_origin(request: Request) -> str:
    """Origine du navigateur (en-tête Origin), sinon l'origine publique configurée."""
    origin = (request.headers.get("origin") or "").strip()
    if origin.startswith(("http://", "https://")):
        return origin.rstrip("/")
    return config.SITE_ORIGIN

# module storefront.checkout.views
@router.post("/create-checkout-session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(request: Request):
    """
    Crée une session Checkout Stripe pour le panier envoyé par le navigateur.
    - Entrée JSON: { "items": [ {name, price, quantity, image?, description?} ], "customerData"?: {...} }
    - Étapes:
      1) Valider/assainir la requête (validate_session_request), 400 au premier champ invalide
      2) Construire et créer la session (builder.create_checkout_session) hors boucle événementielle
      3) Retourner uniquement {id, url}
    - Erreurs: 400 si requête invalide, 500 (message générique) si Stripe échoue
    """
    try:
        body: Any = await request.json()
    except ValueError:
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    try:
        validated = validate_session_request(body)
    except CheckoutValidationError as e:
        logger.warning("checkout.validation rejected field=%s index=%s", e.category, e.index)
        return JSONResponse({"error": e.message, "details": e.to_details()}, status_code=400)

    try:
        handle = await run_in_threadpool(builder.create_checkout_session, validated, request_origin(request))
    except GatewayError:
        # Détail Stripe uniquement dans les logs serveur
        logger.exception("Erreur create_checkout_session")
        return JSONResponse({"error": GENERIC_GATEWAY_ERROR}, status_code=500)

    logger.info("checkout.session created id=%s items=%s", handle.id, len(validated.items))
    return JSONResponse(handle.model_dump())
