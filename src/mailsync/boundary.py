"""Normalization helpers for the caller-facing request layer.

The core only ever sees canonical folder names; whatever sits in front of it
(HTTP handlers, the CLI) runs incoming folder names through
:func:`canonical_folder` and renders results with the ``*_payload`` helpers.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

from .core.config import FolderSettings
from .core.models import Attachment, AttachmentContent, Email, MailPage


def canonical_folder(name: str | None, folders: FolderSettings | None = None) -> str:
    """Map the lower-case ``inbox`` alias (or nothing) to the canonical inbox."""
    folders = folders or FolderSettings()
    if not name or name.strip().lower() == "inbox":
        return folders.inbox
    return name.strip()


def user_name_from_identity(identity: str) -> str:
    """Derive a display name from a mailbox identity: ``jane.doe@x`` -> ``Jane Doe``."""
    local_part = identity.split("@")[0]
    return " ".join(
        piece[:1].upper() + piece[1:] for piece in local_part.split(".") if piece
    )


def attachment_headers(content: AttachmentContent) -> dict[str, str]:
    """Response headers for an attachment download."""
    disposition = "inline" if content.disposition == "inline" else "attachment"
    ascii_name = content.filename.encode("ascii", "ignore").decode() or "attachment"
    ascii_name = ascii_name.replace("\\", "_").replace('"', "_")
    value = f'{disposition}; filename="{ascii_name}"'
    if ascii_name != content.filename:
        value += f"; filename*=UTF-8''{quote(content.filename)}"
    return {
        "Content-Type": content.content_type,
        "Content-Length": str(content.size),
        "Content-Disposition": value,
    }


def attachment_payload(attachment: Attachment) -> dict[str, Any]:
    return {
        "filename": attachment.filename,
        "originalFilename": attachment.original_filename,
        "size": attachment.size,
        "contentType": attachment.content_type,
        "url": attachment.url,
        "contentId": attachment.content_id,
        "contentDisposition": attachment.disposition,
        "content": attachment.content,
        "isInline": attachment.is_inline,
    }


def email_payload(email: Email) -> dict[str, Any]:
    return {
        "id": email.id,
        "sender": email.sender,
        "senderEmail": email.sender_email,
        "to": email.to,
        "toEmail": email.to_email,
        "subject": email.subject,
        "preview": email.preview,
        "body": email.body,
        "date": _iso(email.date),
        "unread": email.unread,
        "flagged": email.flagged,
        "important": email.important,
        "category": email.category,
        "categoryColor": email.category_color,
        "folder": email.folder,
        "attachments": [attachment_payload(a) for a in email.attachments],
    }


def page_payload(page: MailPage) -> dict[str, Any]:
    pagination = page.pagination
    return {
        "folder": page.folder,
        "userName": page.user_name,
        "mails": [email_payload(mail) for mail in page.mails],
        "pagination": {
            "page": pagination.page,
            "limit": pagination.limit,
            "total": pagination.total,
            "hasNext": pagination.has_next,
            "hasPrev": pagination.has_prev,
        },
    }


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.isoformat()


__all__ = [
    "attachment_headers",
    "attachment_payload",
    "canonical_folder",
    "email_payload",
    "page_payload",
    "user_name_from_identity",
]
