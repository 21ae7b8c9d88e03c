import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront import config
from storefront.checkout import stripe_client
from storefront.checkout.errors import WebhookVerificationError
from storefront.notifications import NotificationSender, default_sender
from . import processor
from .ledger import EventLedger, InMemoryEventLedger

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Webhooks"])

def get_event_ledger(request: Request) -> EventLedger:
    ledger = getattr(request.app.state, "event_ledger", None)
    if ledger is None:
        ledger = InMemoryEventLedger(config.WEBHOOK_LEDGER_SIZE)
        request.app.state.event_ledger = ledger
    return ledger

def get_notification_sender(request: Request) -> NotificationSender:
    sender = getattr(request.app.state, "notification_sender", None)
    if sender is None:
        sender = default_sender()
        request.app.state.notification_sender = sender
    return sender

# module storefront.webhooks.views
@router.post("/webhooks", include_in_schema=False)
async def stripe_webhook(
    request: Request,
    ledger: EventLedger = Depends(get_event_ledger),
    sender: NotificationSender = Depends(get_notification_sender),
):
    """
    Webhook Stripe.
    - Signature: body brut + en-tête Stripe-Signature + STRIPE_WEBHOOK_SECRET (stripe_client.construct_event)
    - Rejet (400) sans aucun effet de bord si la signature ou le payload est invalide
    - Événement vérifié: processor.process_event, puis {"received": true} quel que soit le résultat des handlers
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    try:
        event = stripe_client.construct_event(payload, sig_header)
    except WebhookVerificationError as e:
        logger.warning("webhook.rejected signature/payload invalide: %s", e)
        return JSONResponse({"error": "Webhook signature verification failed"}, status_code=400)

    result = await processor.process_event(event, ledger=ledger, sender=sender)
    return JSONResponse(result)
