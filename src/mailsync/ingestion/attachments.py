"""On-demand extraction of a single attachment by positional index."""

from __future__ import annotations

import logging

from ..core.exceptions import AttachmentIndexError, MessageNotFoundError
from ..core.interfaces import MailSession
from ..core.models import AttachmentContent
from ..mailbox.locking import with_lock
from .parser import attachment_parts, parse_message

LOGGER = logging.getLogger(__name__)


def extract_attachment(
    session: MailSession, folder: str, uid: int, index: int
) -> AttachmentContent:
    """Re-fetch message ``uid`` from ``folder`` and return attachment ``index``.

    Nothing is cached between listing and download; the message is fetched
    and parsed again on every call.

    Raises:
        MessageNotFoundError: If ``uid`` is not present in ``folder``.
        AttachmentIndexError: If ``index`` is outside ``0 <= index < count``.
    """
    fetched = with_lock(
        session, folder, lambda _lock: session.fetch_uid(uid), readonly=True
    )
    if fetched is None:
        raise MessageNotFoundError(f"UID {uid} not found in '{folder}'")

    parts = attachment_parts(parse_message(fetched.raw))
    LOGGER.debug("UID %s in %s has %d attachment(s)", uid, folder, len(parts))
    if not 0 <= index < len(parts):
        raise AttachmentIndexError(index, len(parts))

    part = parts[index]
    payload = part.get_payload(decode=True)
    content = payload if isinstance(payload, bytes) else b""
    return AttachmentContent(
        filename=part.get_filename() or f"attachment-{index}",
        content_type=part.get_content_type() or "application/octet-stream",
        content=content,
        size=len(content),
        disposition=part.get_content_disposition() or "attachment",
    )


__all__ = ["extract_attachment"]
