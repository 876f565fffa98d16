"""Utilities for parsing raw RFC822 messages into normalized emails."""

from __future__ import annotations

import base64
import re
from collections.abc import Iterable
from datetime import datetime
from email import errors, policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses, parsedate_to_datetime
from urllib.parse import urlencode

from ..core.config import MessageSettings
from ..core.exceptions import ParseError
from ..core.interfaces import MessageParser
from ..core.markup import html_to_text, text_to_html
from ..core.models import FLAGGED, IMPORTANT, SEEN, Attachment, Email, FetchedMessage
from .category import DomainCategorizer

# Defects that leave the MIME tree unusable rather than merely untidy.
_FATAL_DEFECTS = (
    errors.NoBoundaryInMultipartDefect,
    errors.StartBoundaryNotFoundDefect,
    errors.MultipartInvariantViolationDefect,
)

_WHITESPACE = re.compile(r"\s+")


class EmailParser(MessageParser):
    """Convert fetched payloads into :class:`Email` instances."""

    def __init__(
        self,
        settings: MessageSettings | None = None,
        categorizer: DomainCategorizer | None = None,
    ) -> None:
        """Prepare parser, HTML converter and categorizer."""
        self._settings = settings or MessageSettings()
        self._categorizer = categorizer or DomainCategorizer()

    def parse(self, message: FetchedMessage, folder: str) -> Email:
        """Parse a fetched message into an :class:`Email`.

        Raises:
            ParseError: If the payload is not a usable MIME message.
        """
        parsed = parse_message(message.raw)
        try:
            return self._normalize(parsed, message, folder)
        except (LookupError, TypeError, ValueError, AttributeError) as exc:
            raise ParseError(f"Unable to normalize message UID {message.uid}") from exc

    def _normalize(
        self, parsed: EmailMessage, message: FetchedMessage, folder: str
    ) -> Email:
        sender, sender_email = _participant(parsed.get_all("From", []))
        to_name, to_email = _participant(parsed.get_all("To", []))

        text, html_body = extract_bodies(parsed)
        if text is None and html_body is not None:
            text = html_to_text(html_body)
        text_as_html = text_to_html(text) if text else None

        category = self._categorizer.categorize(sender_email)
        return Email(
            id=message.uid,
            sender=sender,
            sender_email=sender_email,
            to=to_name,
            to_email=to_email,
            subject=_header_text(parsed.get("Subject")),
            preview=_preview(text, self._settings.preview_length),
            body=html_body or text_as_html or text or "",
            date=_try_parse_datetime(parsed.get("Date")) or message.internal_date,
            unread=SEEN not in message.flags,
            flagged=FLAGGED in message.flags,
            important=IMPORTANT in message.flags,
            category=category,
            category_color=self._categorizer.color_for(category),
            folder=folder,
            attachments=tuple(self._attachments(parsed, message.uid, folder)),
        )

    def _attachments(
        self, parsed: EmailMessage, uid: int, folder: str
    ) -> Iterable[Attachment]:
        limit = self._settings.inline_attachment_limit
        for index, part in enumerate(attachment_parts(parsed)):
            payload = _decoded_payload(part)
            original = part.get_filename()
            filename = original or f"attachment-{index}"
            query = urlencode(
                {"uid": uid, "folder": folder, "index": index, "filename": filename}
            )
            yield Attachment(
                filename=filename,
                original_filename=original,
                size=len(payload),
                content_type=part.get_content_type(),
                url=f"{self._settings.download_path}?{query}",
                content_id=_header_text(part.get("Content-ID")),
                disposition=part.get_content_disposition() or "attachment",
                content=(
                    base64.b64encode(payload).decode("ascii")
                    if len(payload) < limit
                    else None
                ),
            )


def parse_message(raw: bytes) -> EmailMessage:
    """Decode raw bytes into an :class:`EmailMessage` or raise :class:`ParseError`."""
    if not raw or not raw.strip():
        raise ParseError("Empty message payload")
    try:
        message = BytesParser(policy=policy.default).parsebytes(raw)
    except (LookupError, TypeError, ValueError, IndexError) as exc:
        raise ParseError("Malformed MIME message") from exc
    if not isinstance(message, EmailMessage):
        raise ParseError("Parser did not return a message")
    for part in message.walk():
        for defect in part.defects:
            if isinstance(defect, _FATAL_DEFECTS):
                raise ParseError(f"Malformed MIME structure: {type(defect).__name__}")
    return message


def attachment_parts(message: EmailMessage) -> list[EmailMessage]:
    """Return attachment leaves in document order.

    Listing and download both index into this list, so its order defines the
    positional attachment index.
    """
    return [
        part
        for part in message.walk()
        if not part.is_multipart() and _is_attachment(part)
    ]


def extract_bodies(message: EmailMessage) -> tuple[str | None, str | None]:
    """Return the ``(text, html)`` bodies, joining multiple parts of a kind."""
    plain_chunks: list[str] = []
    html_chunks: list[str] = []

    for part in message.walk():
        if part.is_multipart() or _is_attachment(part):
            continue
        content_type = part.get_content_type()
        if content_type not in ("text/plain", "text/html"):
            continue
        try:
            content_obj = part.get_content()
        except LookupError:
            payload = part.get_payload(decode=True) or b""
            content_obj = payload.decode("utf-8", errors="replace")
        if not isinstance(content_obj, str):
            continue
        content = content_obj.strip()
        if not content:
            continue
        if content_type == "text/plain":
            plain_chunks.append(content)
        else:
            html_chunks.append(content)

    text = _collapse_chunks(plain_chunks, "\n\n")
    html_body = _collapse_chunks(html_chunks, "\n")
    return text, html_body


def _is_attachment(part: EmailMessage) -> bool:
    disposition = part.get_content_disposition()
    if disposition == "attachment":
        return True
    if part.get_filename():
        return True
    if part.get_content_maintype() in ("text", "multipart"):
        return False
    # Non-text leaves such as inline images carry binary payloads.
    return part.get_content_maintype() != "message"


def _decoded_payload(part: EmailMessage) -> bytes:
    payload = part.get_payload(decode=True)
    return payload if isinstance(payload, bytes) else b""


def _participant(headers: Iterable[object]) -> tuple[str, str]:
    """Return ``(display name, address)`` of the first address in ``headers``."""
    values = [str(value) for value in headers if value is not None]
    for name, address in getaddresses(values):
        if not address and not name:
            continue
        display = name.strip().strip('"').strip()
        if not display:
            display = address.split("@")[0] if address else "Unknown"
        return display or "Unknown", address
    return "Unknown", ""


def _header_text(value: object) -> str | None:
    if value is None:
        return None
    return str(value).strip()


def _preview(text: str | None, length: int) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()[:length]


def _collapse_chunks(chunks: Iterable[str], separator: str) -> str | None:
    filtered_chunks = [chunk for chunk in chunks if chunk]
    if not filtered_chunks:
        return None
    return separator.join(filtered_chunks)


def _try_parse_datetime(header_value: object) -> datetime | None:
    if header_value is None:
        return None
    try:
        return parsedate_to_datetime(str(header_value))
    except (TypeError, ValueError, IndexError):
        return None


__all__ = [
    "EmailParser",
    "attachment_parts",
    "extract_bodies",
    "parse_message",
]
