"""
Envoi des confirmations de commande.
- Client: si un email a été capturé par Stripe.
- Opérateur: toujours (boîte fixe OPERATOR_EMAIL).
Un destinataire en échec est loggé et n'empêche pas l'envoi à l'autre.
"""
import logging
from typing import Any, Dict, List

from storefront import config
from .formatting import format_order_email
from .sender import NotificationSender

logger = logging.getLogger(__name__)

# module storefront.notifications.dispatcher
async def dispatch_order_confirmation(
    session: Dict[str, Any],
    line_items: List[Dict[str, Any]],
    sender: NotificationSender,
) -> Dict[str, bool]:
    """Retour: {adresse: envoyé?} pour chaque destinataire tenté."""
    html = format_order_email(session, line_items)
    session_id = session.get("id") or ""
    customer_email = (session.get("customer_details") or {}).get("email")

    messages = []
    if customer_email:
        messages.append((customer_email, f"Order Confirmation - {session_id}"))
    messages.append((config.OPERATOR_EMAIL, f"New Order Received - {session_id}"))

    results: Dict[str, bool] = {}
    for to, subject in messages:
        try:
            await sender.send(to, subject, html)
            results[to] = True
            logger.info("notification.sent to=%s session_id=%s", to, session_id)
        except Exception:
            # Transport opaque: toute erreur est isolée au destinataire concerné
            results[to] = False
            logger.exception("Erreur envoi notification to=%s session_id=%s", to, session_id)
    return results
