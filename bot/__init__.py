"""Telegram bot handlers, booking wizard and session state."""

from .admin_handlers import register_admin_handlers
from .handlers import register_handlers
from .states import WizardEvent, WizardStep

__all__ = [
    "register_admin_handlers",
    "register_handlers",
    "WizardEvent",
    "WizardStep",
]
