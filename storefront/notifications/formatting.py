"""
Mise en forme de l'email de confirmation de commande (HTML, Jinja2 avec autoescape).
Document éphémère: construit pour l'envoi, jamais persisté.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from storefront import config

env = Environment(
    loader=FileSystemLoader(str(config.TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)

# module storefront.notifications.formatting
def money(amount_minor: Optional[int]) -> str:
    return f"${(amount_minor or 0) / 100:.2f}"

def format_order_date(created: Optional[int]) -> str:
    if not created:
        return "N/A"
    dt = datetime.fromtimestamp(int(created), tz=timezone.utc)
    return dt.strftime("%B %d, %Y %I:%M %p UTC")

def _shipping(session: Dict[str, Any]) -> Dict[str, Any]:
    # Selon la version d'API: shipping_details ou collected_information.shipping_details
    details = session.get("shipping_details") or (session.get("collected_information") or {}).get("shipping_details")
    return details or {}

def order_context(session: Dict[str, Any], line_items: List[Dict[str, Any]]) -> Dict[str, Any]:
    customer = session.get("customer_details") or {}
    shipping = _shipping(session)
    return {
        "store_name": config.STORE_NAME,
        "support_email": config.SUPPORT_EMAIL,
        "support_phone": config.SUPPORT_PHONE,
        "store_address": config.STORE_ADDRESS,
        "order_id": session.get("id") or "",
        "order_date": format_order_date(session.get("created")),
        "customer_name": customer.get("name") or "Customer",
        "customer_email": customer.get("email") or "",
        "items": [
            {
                "description": it.get("description") or "Item",
                "quantity": it.get("quantity") or 0,
                "total": money(it.get("amount_total")),
            }
            for it in line_items
        ],
        "tax": money((session.get("total_details") or {}).get("amount_tax")),
        "total": money(session.get("amount_total")),
        "shipping_name": shipping.get("name") or customer.get("name") or "Customer",
        "shipping_address": shipping.get("address"),
        "delivery_instructions": (session.get("metadata") or {}).get("deliveryInstructions") or "",
        "shipping_days": f"{config.SHIPPING_MIN_DAYS}-{config.SHIPPING_MAX_DAYS}",
    }

def format_order_email(session: Dict[str, Any], line_items: List[Dict[str, Any]]) -> str:
    template = env.get_template("order_confirmation.html")
    return template.render(**order_context(session, line_items))
