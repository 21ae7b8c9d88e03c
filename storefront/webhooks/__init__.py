"""
Module 'webhooks': vérification, dédoublonnage et dispatch des événements Stripe.
"""

from .ledger import EventLedger, InMemoryEventLedger, RedisEventLedger
from .processor import process_event, handle_checkout_completed, HANDLERS

__all__ = [
    "EventLedger",
    "InMemoryEventLedger",
    "RedisEventLedger",
    "process_event",
    "handle_checkout_completed",
    "HANDLERS",
]
