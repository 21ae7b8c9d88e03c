"""
Traitement des événements Stripe déjà vérifiés.

Cycle: Reçu -> Vérifié/Rejeté (dans la vue) -> Dispatché (ici).
- checkout.session.completed: lignes de la session, email de confirmation client + opérateur.
- payment_intent.succeeded / payment_intent.payment_failed: log uniquement.
- Autres types: log et ignorés (jamais d'échec pour un type inconnu).
Les erreurs des effets de bord sont loggées; l'accusé de réception reste {received: true}.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List

from starlette.concurrency import run_in_threadpool

from storefront.checkout import stripe_client
from storefront.notifications import NotificationSender, dispatch_order_confirmation
from .ledger import EventLedger

logger = logging.getLogger(__name__)

LineItemsFetcher = Callable[[str], List[Dict[str, Any]]]

# module storefront.webhooks.processor
def order_summary(session: Dict[str, Any], line_items: List[Dict[str, Any]]) -> Dict[str, Any]:
    customer = session.get("customer_details") or {}
    return {
        "session_id": session.get("id"),
        "customer_email": customer.get("email"),
        "customer_name": customer.get("name"),
        "amount_total": (session.get("amount_total") or 0) / 100,
        "currency": session.get("currency"),
        "payment_status": session.get("payment_status"),
        "items": [
            {
                "description": it.get("description"),
                "quantity": it.get("quantity"),
                "amount": (it.get("amount_total") or 0) / 100,
            }
            for it in line_items
        ],
    }

async def handle_checkout_completed(
    session: Dict[str, Any],
    sender: NotificationSender,
    fetch_line_items: LineItemsFetcher,
) -> bool:
    """Retourne True si la confirmation a été traitée sans erreur."""
    session_id = session.get("id") or ""
    logger.info("webhook.checkout_completed session_id=%s", session_id)
    try:
        line_items = await run_in_threadpool(fetch_line_items, session_id)
        await dispatch_order_confirmation(session, line_items, sender)
        logger.info("order.details %s", order_summary(session, line_items))
        return True
    except Exception:
        # Découplé de l'accusé de réception: Stripe ne doit pas relivrer pour un email raté
        logger.exception("Erreur traitement confirmation de commande session_id=%s", session_id)
        return False

async def _log_payment_succeeded(obj: Dict[str, Any], **_: Any) -> None:
    logger.info("webhook.payment_intent succeeded id=%s", obj.get("id"))

async def _log_payment_failed(obj: Dict[str, Any], **_: Any) -> None:
    logger.info("webhook.payment_intent failed id=%s", obj.get("id"))

async def _handle_checkout_completed(obj: Dict[str, Any], **kw: Any) -> None:
    await handle_checkout_completed(obj, kw["sender"], kw["fetch_line_items"])

HANDLERS: Dict[str, Callable[..., Awaitable[None]]] = {
    "checkout.session.completed": _handle_checkout_completed,
    "payment_intent.succeeded": _log_payment_succeeded,
    "payment_intent.payment_failed": _log_payment_failed,
}

async def process_event(
    event: Dict[str, Any],
    *,
    ledger: EventLedger,
    sender: NotificationSender,
    fetch_line_items: LineItemsFetcher | None = None,
) -> Dict[str, Any]:
    """
    Dispatche un événement vérifié selon son type.
    - Dédoublonnage par event.id avant tout effet de bord.
    - Retour: {"received": True} (+ "duplicate": True pour une relivraison).
    """
    event_id = event.get("id")
    event_type = event.get("type") or ""
    if event_id and not await ledger.claim(str(event_id)):
        logger.info("webhook.duplicate event_id=%s type=%s", event_id, event_type)
        return {"received": True, "duplicate": True}

    obj = (event.get("data") or {}).get("object") or {}
    handler = HANDLERS.get(event_type)
    if handler is None:
        logger.info("webhook.unhandled type=%s event_id=%s", event_type, event_id)
        return {"received": True}

    await handler(
        obj,
        sender=sender,
        fetch_line_items=fetch_line_items or stripe_client.list_line_items,
    )
    return {"received": True}
