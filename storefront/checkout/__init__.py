"""
Module 'checkout' (feature-first): point d'entrée public.
Réunit validation de la requête, construction de la session, et client Stripe.
"""

from .errors import CheckoutValidationError, GatewayError, WebhookVerificationError
from .validation import (
    ValidatedLineItem,
    ValidatedCustomer,
    ValidatedRequest,
    validate_session_request,
    sanitize_customer,
)
from .builder import SessionHandle, to_minor_units, build_session_params, create_checkout_session
from .stripe_client import require_stripe, create_session, list_line_items, construct_event

__all__ = [
    # errors
    "CheckoutValidationError",
    "GatewayError",
    "WebhookVerificationError",
    # validation
    "ValidatedLineItem",
    "ValidatedCustomer",
    "ValidatedRequest",
    "validate_session_request",
    "sanitize_customer",
    # builder
    "SessionHandle",
    "to_minor_units",
    "build_session_params",
    "create_checkout_session",
    # stripe
    "require_stripe",
    "create_session",
    "list_line_items",
    "construct_event",
]
