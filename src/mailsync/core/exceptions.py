"""Error taxonomy shared by every mailbox and delivery operation."""

from __future__ import annotations


class MailError(Exception):
    """Base exception for all mailsync errors."""


class AuthenticationError(MailError):
    """The mail store rejected the supplied credentials. Never retried."""


class MailConnectionError(MailError, ConnectionError):
    """Network, TLS, or protocol-level connection failure. Callers may retry."""


class FolderError(MailError):
    """A folder is missing, not selectable, or already locked in the session."""


class ParseError(MailError):
    """A raw message could not be decoded into an :class:`Email`."""


class MessageNotFoundError(MailError):
    """No message with the requested UID exists in the folder."""


class MutationError(MailError):
    """A flag change, move, or delete was refused by the server."""

    def __init__(self, operation: str, uid: int, detail: str | None = None) -> None:
        self.operation = operation
        self.uid = uid
        message = f"{operation} failed for UID {uid}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AppendError(MailError):
    """A composed message could not be appended into a folder."""

    def __init__(self, folder: str, detail: str | None = None) -> None:
        self.folder = folder
        message = f"Failed to append message to '{folder}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AttachmentIndexError(MailError, IndexError):
    """The requested attachment position does not exist on the message."""

    def __init__(self, index: int, count: int) -> None:
        self.index = index
        self.count = count
        super().__init__(f"Attachment index {index} out of range (total: {count})")


class CompositionError(MailError):
    """An outbound message could not be serialized, e.g. an unreadable attachment."""


class DeliveryError(MailError):
    """The outbound transport failed to send a message."""


__all__ = [
    "AppendError",
    "AttachmentIndexError",
    "AuthenticationError",
    "CompositionError",
    "DeliveryError",
    "FolderError",
    "MailConnectionError",
    "MailError",
    "MessageNotFoundError",
    "MutationError",
    "ParseError",
]
