"""Mailbox synchronization and message-transfer engine."""

from .core.models import Credentials, MessageRef, OutboundAttachment, OutboundMessage
from .service import MailService

__all__ = [
    "Credentials",
    "MailService",
    "MessageRef",
    "OutboundAttachment",
    "OutboundMessage",
]

__version__ = "0.1.0"
