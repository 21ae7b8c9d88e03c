"""
Validation et assainissement de la requête de session checkout.

Toutes les règles sont appliquées côté serveur, quel que soit le contrôle fait par le client.
La première règle violée interrompt la validation (CheckoutValidationError), sans effet de bord.
"""
import math
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .errors import CheckoutValidationError

MAX_QUANTITY = 100
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 200
MAX_INSTRUCTIONS_LENGTH = 500

# module storefront.checkout.validation
class ValidatedLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal
    quantity: int
    image: Optional[str] = None
    description: Optional[str] = None


class ValidatedCustomer(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: Optional[str] = None
    delivery_instructions: Optional[str] = None
    marketing_opt_in: bool = False


class ValidatedRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: Tuple[ValidatedLineItem, ...]
    customer: ValidatedCustomer = ValidatedCustomer()


def _is_number(v: Any) -> bool:
    # bool est un int en Python: exclu explicitement
    return isinstance(v, (int, float)) and not isinstance(v, bool)

def _validate_price(v: Any, index: int) -> Decimal:
    if not _is_number(v) or (isinstance(v, float) and not math.isfinite(v)) or v <= 0:
        raise CheckoutValidationError("price", "Invalid price", index)
    return Decimal(str(v))

def _validate_quantity(v: Any, index: int) -> int:
    if isinstance(v, float) and math.isfinite(v) and v.is_integer():
        v = int(v)
    if not isinstance(v, int) or isinstance(v, bool) or v <= 0 or v > MAX_QUANTITY:
        raise CheckoutValidationError("quantity", "Invalid quantity", index)
    return v

def _optional_text(v: Any, category: str, limit: int, index: int) -> Optional[str]:
    if v is None:
        return None
    if not isinstance(v, str):
        raise CheckoutValidationError(category, f"Invalid {category}", index)
    return v[:limit] or None

def validate_line_item(raw: Any, index: int) -> ValidatedLineItem:
    if not isinstance(raw, dict):
        raise CheckoutValidationError("items", "Invalid item data", index)
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise CheckoutValidationError("name", "Invalid item data", index)
    price = _validate_price(raw.get("price"), index)
    quantity = _validate_quantity(raw.get("quantity"), index)
    return ValidatedLineItem(
        name=name.strip()[:MAX_NAME_LENGTH],
        price=price,
        quantity=quantity,
        image=_optional_text(raw.get("image"), "image", 2048, index),
        description=_optional_text(raw.get("description"), "description", MAX_DESCRIPTION_LENGTH, index),
    )

def sanitize_customer(raw: Any) -> ValidatedCustomer:
    """
    Normalise les données client optionnelles:
    - email: trim + minuscules (vide => absent)
    - instructions de livraison: tronquées à 500 caractères
    - opt-in marketing: booléen strict
    """
    if raw is None:
        return ValidatedCustomer()
    if not isinstance(raw, dict):
        raise CheckoutValidationError("customer", "Invalid customer data")

    email = raw.get("email")
    if email is not None and not isinstance(email, str):
        raise CheckoutValidationError("customer", "Invalid customer email")
    email = (email or "").strip().lower() or None

    instructions = raw.get("deliveryInstructions")
    if instructions is not None and not isinstance(instructions, str):
        raise CheckoutValidationError("customer", "Invalid delivery instructions")

    return ValidatedCustomer(
        email=email,
        delivery_instructions=(instructions or "")[:MAX_INSTRUCTIONS_LENGTH] or None,
        marketing_opt_in=bool(raw.get("marketingOptIn")),
    )

def validate_session_request(body: Any) -> ValidatedRequest:
    """
    Valide le corps brut {items: [...], customerData?: {...}}.
    Retourne un ValidatedRequest immuable ou lève CheckoutValidationError.
    """
    if not isinstance(body, dict):
        raise CheckoutValidationError("items", "Invalid items data")
    items: Any = body.get("items")
    if not isinstance(items, list) or not items:
        raise CheckoutValidationError("items", "Invalid items data")

    validated: List[ValidatedLineItem] = [validate_line_item(raw, i) for i, raw in enumerate(items)]
    customer = sanitize_customer(body.get("customerData"))
    return ValidatedRequest(items=tuple(validated), customer=customer)
