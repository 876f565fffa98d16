"""Protocol interfaces for decoupling components."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from email.message import EmailMessage
from typing import Protocol

from .models import Credentials, Email, FetchedMessage


class MailSession(Protocol):
    """A single authenticated, stateful connection to the mail store."""

    @property
    def locked_folder(self) -> str | None:
        """Folder currently selected under a lock, if any."""
        raise NotImplementedError

    def select(self, folder: str, *, readonly: bool = False) -> int:
        """Select ``folder`` and return its current message count."""
        raise NotImplementedError

    def unselect(self) -> None:
        """Release the currently selected folder."""
        raise NotImplementedError

    def noop(self) -> None:
        """Ask the server to flush pending mailbox updates."""
        raise NotImplementedError

    def fetch_range(self, start: int, end: int) -> Iterator[FetchedMessage]:
        """Stream messages addressed by sequence numbers ``start:end``."""
        raise NotImplementedError

    def fetch_uid(self, uid: int) -> FetchedMessage | None:
        """Return a single message addressed by UID."""
        raise NotImplementedError

    def store_flags(self, uid: int, flags: Sequence[str], *, add: bool) -> None:
        """Add or remove ``flags`` on the message with ``uid``."""
        raise NotImplementedError

    def expunge(self, uid: int) -> None:
        """Permanently remove messages marked deleted."""
        raise NotImplementedError

    def move(self, uid: int, destination: str) -> None:
        """Relocate the message with ``uid`` into ``destination``."""
        raise NotImplementedError

    def append(self, folder: str, raw: bytes, flags: Iterable[str]) -> None:
        """Insert a pre-composed raw message into ``folder``."""
        raise NotImplementedError

    def close(self) -> None:
        """Log out and release network resources."""
        raise NotImplementedError


class SessionFactory(Protocol):
    """Builds a fresh authenticated session per logical operation."""

    def open(self, credentials: Credentials) -> MailSession:
        """Connect and authenticate with ``credentials``."""
        raise NotImplementedError


class MessageParser(Protocol):
    """Turns raw fetched messages into normalized emails."""

    def parse(self, message: FetchedMessage, folder: str) -> Email:
        """Convert a fetched payload into an :class:`Email`."""
        raise NotImplementedError


class OutboundTransport(Protocol):
    """Delivers composed messages to remote recipients."""

    def send(self, message: EmailMessage) -> None:
        """Transmit ``message``."""
        raise NotImplementedError

    def close(self) -> None:
        """Release network resources."""
        raise NotImplementedError


__all__ = [
    "MailSession",
    "MessageParser",
    "OutboundTransport",
    "SessionFactory",
]
