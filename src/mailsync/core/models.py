"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

Category = Literal["work", "personal", "promotions"]
MutationOp = Literal["read", "starred", "important", "delete", "move"]
DeliveryMode = Literal["send", "reply", "forward"]

# IMAP system flags and the custom keyword used for "important".
SEEN = r"\Seen"
FLAGGED = r"\Flagged"
DELETED = r"\Deleted"
DRAFT = r"\Draft"
IMPORTANT = "Important"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Mailbox identity and secret supplied fresh on every call."""

    identity: str
    secret: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class MessageRef:
    """A message addressed by its persistent UID inside a folder."""

    folder: str
    uid: int


@dataclass(slots=True)
class FetchedMessage:
    """Raw IMAP payload with the per-message metadata returned by FETCH."""

    sequence: int
    uid: int
    flags: frozenset[str]
    internal_date: datetime | None
    raw: bytes


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class Attachment:
    """Metadata describing an attachment of a listed message."""

    filename: str
    original_filename: str | None
    size: int
    content_type: str
    url: str
    content_id: str | None
    disposition: str | None
    content: str | None = None

    @property
    def is_inline(self) -> bool:
        return self.disposition == "inline"


@dataclass(slots=True)
class AttachmentContent:
    """Binary payload of a single attachment fetched on demand."""

    filename: str
    content_type: str
    content: bytes
    size: int
    disposition: str


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class Email:
    """Normalized message ready to be handed to the presentation layer."""

    id: int
    sender: str
    sender_email: str
    to: str
    to_email: str
    subject: str | None
    preview: str
    body: str
    date: datetime | None
    unread: bool
    flagged: bool
    important: bool
    category: Category
    category_color: str
    folder: str
    attachments: tuple[Attachment, ...] = ()


@dataclass(frozen=True, slots=True)
class Pagination:
    """Page window over a folder, derived from its live message count."""

    page: int
    limit: int
    total: int
    has_next: bool
    has_prev: bool


@dataclass(slots=True)
class MailPage:
    """One page of normalized messages, newest first."""

    folder: str
    user_name: str
    mails: list[Email]
    pagination: Pagination
    skipped: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class OutboundAttachment:
    """Attachment of an outgoing message.

    Exactly one source is expected: a server-side ``path``, base64 ``content``,
    or a ``url`` (absolute ``http(s)`` or relative to the upload root).
    """

    filename: str | None = None
    content_type: str | None = None
    path: Path | None = None
    content: str | None = None
    url: str | None = None


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class OutboundMessage:
    """Description of a message to deliver or to append into a folder."""

    from_address: str
    to: str | None
    subject: str | None = None
    html: str | None = None
    text: str | None = None
    attachments: tuple[OutboundAttachment, ...] = ()
    in_reply_to: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.to or self.subject or self.text or self.html)


__all__ = [
    "DELETED",
    "DRAFT",
    "FLAGGED",
    "IMPORTANT",
    "SEEN",
    "Attachment",
    "AttachmentContent",
    "Category",
    "Credentials",
    "DeliveryMode",
    "Email",
    "FetchedMessage",
    "MailPage",
    "MessageRef",
    "MutationOp",
    "OutboundAttachment",
    "OutboundMessage",
    "Pagination",
]
