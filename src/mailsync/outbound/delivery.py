"""Outbound delivery: send, reply, forward and detached system messages."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable

from ..core.config import SmtpSettings, SystemSenderSettings
from ..core.exceptions import CompositionError, DeliveryError
from ..core.interfaces import OutboundTransport
from ..core.models import Credentials, DeliveryMode, OutboundMessage
from ..transport.smtp_client import SmtpClient
from .composer import MessageComposer
from .quoting import as_forward, as_reply

LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[Credentials], OutboundTransport]

WELCOME_SUBJECT = "Welcome to Shoora Mail!"
WELCOME_TEXT = "Welcome to Shoora Mail! You have successfully logged in."
WELCOME_HTML = (
    "<!DOCTYPE html><html><head><meta charset=\"UTF-8\"></head>"
    "<body style=\"margin:0;padding:0;background-color:#f4f4f4\">"
    "<div style=\"padding:24px;font-family:sans-serif\">"
    "<h1>Welcome to Shoora Mail!</h1>"
    "<p>You have successfully logged in.</p>"
    "</div></body></html>"
)


def smtp_transport_factory(settings: SmtpSettings) -> TransportFactory:
    """Return a factory opening a connected :class:`SmtpClient` per send."""

    def factory(credentials: Credentials) -> OutboundTransport:
        client = SmtpClient(settings, credentials)
        client.connect()
        return client

    return factory


class DeliveryService:
    """Compose and transmit outbound messages, independent of any IMAP session.

    ``credentials=None`` selects the configured system identity; otherwise the
    caller's own mailbox credentials authenticate the transport.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        system_sender: SystemSenderSettings | None = None,
        composer: MessageComposer | None = None,
    ) -> None:
        self._transport_factory = transport_factory
        self._system_sender = system_sender or SystemSenderSettings()
        self._composer = composer or MessageComposer()
        self._background: set[asyncio.Task[None]] = set()

    def send(self, credentials: Credentials | None, message: OutboundMessage) -> None:
        """Deliver ``message`` as-is.

        Raises:
            DeliveryError: If composition or transmission fails.
            AuthenticationError: If the transport rejects the identity.
            MailConnectionError: If the transport cannot be reached.
        """
        identity = credentials or self._system_credentials()
        if not message.from_address:
            message = dataclasses.replace(
                message,
                from_address=self._default_from(identity, system=credentials is None),
            )
        if not message.to:
            raise DeliveryError("Outbound message has no recipient")
        try:
            mime_message = self._composer.compose(message)
        except CompositionError as exc:
            raise DeliveryError(str(exc)) from exc

        transport = self._transport_factory(identity)
        try:
            transport.send(mime_message)
        finally:
            transport.close()

    def reply(self, credentials: Credentials | None, message: OutboundMessage) -> OutboundMessage:
        """Send ``message`` as a reply and return the rewritten message."""
        rewritten = as_reply(message)
        self.send(credentials, rewritten)
        return rewritten

    def forward(
        self, credentials: Credentials | None, message: OutboundMessage
    ) -> OutboundMessage:
        """Send ``message`` as a forward and return the rewritten message."""
        rewritten = as_forward(message)
        self.send(credentials, rewritten)
        return rewritten

    def deliver(
        self,
        credentials: Credentials | None,
        message: OutboundMessage,
        mode: DeliveryMode = "send",
    ) -> OutboundMessage:
        """Dispatch on ``mode`` and return the message that went out."""
        if mode == "reply":
            return self.reply(credentials, message)
        if mode == "forward":
            return self.forward(credentials, message)
        if mode != "send":
            raise ValueError(f"Unknown delivery mode: {mode}")
        self.send(credentials, message)
        return message

    def schedule_system_message(self, message: OutboundMessage) -> asyncio.Task[None]:
        """Send ``message`` from the system identity as a detached task.

        Must be called from a running event loop. The task's failure is logged
        and never reaches the caller.
        """
        task = asyncio.create_task(asyncio.to_thread(self.send, None, message))
        self._background.add(task)
        task.add_done_callback(self._finish_detached)
        return task

    def _finish_detached(self, task: asyncio.Task[None]) -> None:
        self._background.discard(task)
        if task.cancelled():
            LOGGER.warning("System message task was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error(
                "System message delivery failed: %s",
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    def _system_credentials(self) -> Credentials:
        sender = self._system_sender
        if not sender.username or not sender.password:
            raise DeliveryError("System sender identity is not configured")
        return Credentials(sender.username, sender.password)

    def _default_from(self, identity: Credentials, *, system: bool) -> str:
        if system and self._system_sender.from_name:
            return f"{self._system_sender.from_name} <{identity.identity}>"
        return identity.identity


def build_welcome_message(recipient: str) -> OutboundMessage:
    """Return the transactional greeting sent after a successful login."""
    return OutboundMessage(
        from_address="",
        to=recipient,
        subject=WELCOME_SUBJECT,
        html=WELCOME_HTML,
        text=WELCOME_TEXT,
    )


__all__ = [
    "DeliveryService",
    "TransportFactory",
    "build_welcome_message",
    "smtp_transport_factory",
]
