"""Outbound composition, reply/forward rewriting and delivery."""

from .composer import MessageComposer
from .delivery import DeliveryService, build_welcome_message, smtp_transport_factory
from .quoting import as_forward, as_reply

__all__ = [
    "DeliveryService",
    "MessageComposer",
    "as_forward",
    "as_reply",
    "build_welcome_message",
    "smtp_transport_factory",
]
