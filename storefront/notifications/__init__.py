"""
Module 'notifications': mise en forme et envoi des confirmations de commande.
"""

from .sender import NotificationError, NotificationSender, EmailJSSender, LoggingSender, default_sender
from .formatting import format_order_email
from .dispatcher import dispatch_order_confirmation

__all__ = [
    "NotificationError",
    "NotificationSender",
    "EmailJSSender",
    "LoggingSender",
    "default_sender",
    "format_order_email",
    "dispatch_order_confirmation",
]
