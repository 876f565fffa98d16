"""Serialize outbound message descriptions into RFC 5322 messages."""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
from email import policy
from email.message import EmailMessage
from email.utils import formatdate, make_msgid, parseaddr
from pathlib import Path

import httpx

from ..core.exceptions import CompositionError
from ..core.models import OutboundAttachment, OutboundMessage
from ..core.markup import html_to_text

LOGGER = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class MessageComposer:
    """Build :class:`EmailMessage` objects and raw buffers from descriptions.

    Attachments are resolved from a server-side path, inline base64 content, or
    a URL. Absolute ``http(s)`` URLs are downloaded with ``httpx``; other URLs
    are read relative to ``upload_root``.
    """

    def __init__(
        self,
        *,
        upload_root: Path | None = None,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30,
    ) -> None:
        self._upload_root = upload_root or Path(".")
        self._http_client = http_client
        self._timeout = timeout_seconds

    def compose(self, message: OutboundMessage) -> EmailMessage:
        """Return a fully populated MIME message for ``message``."""
        mime_msg = EmailMessage(policy=policy.default)
        mime_msg["From"] = message.from_address
        if message.to:
            mime_msg["To"] = message.to
        mime_msg["Subject"] = message.subject or ""
        mime_msg["Date"] = formatdate(localtime=True)
        mime_msg["Message-ID"] = make_msgid(domain=_domain_of(message.from_address))

        # Thread headers for proper email threading
        if message.in_reply_to:
            mime_msg["In-Reply-To"] = message.in_reply_to
            mime_msg["References"] = message.in_reply_to

        text = message.text
        if text is None and message.html:
            text = html_to_text(message.html)
        mime_msg.set_content(text or "", subtype="plain", charset="utf-8")
        if message.html:
            mime_msg.add_alternative(message.html, subtype="html", charset="utf-8")

        for attachment in message.attachments:
            data, filename, content_type = self._load_attachment(attachment)
            maintype, _, subtype = content_type.partition("/")
            mime_msg.add_attachment(
                data,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=filename,
            )

        LOGGER.debug(
            "Composed message From=%s To=%s Subject=%s (%d attachment(s))",
            message.from_address,
            message.to,
            message.subject,
            len(message.attachments),
        )
        return mime_msg

    def to_bytes(self, message: OutboundMessage) -> bytes:
        """Return the raw transfer buffer with CRLF line endings."""
        return self.compose(message).as_bytes(policy=policy.SMTP)

    def _load_attachment(self, attachment: OutboundAttachment) -> tuple[bytes, str, str]:
        if attachment.path is not None:
            data = self._read_file(Path(attachment.path))
            source_name = Path(attachment.path).name
        elif attachment.content is not None:
            try:
                data = base64.b64decode(attachment.content, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise CompositionError(
                    f"Attachment '{attachment.filename}' is not valid base64"
                ) from exc
            source_name = None
        elif attachment.url:
            data = self._read_url(attachment.url)
            source_name = attachment.url.rstrip("/").rsplit("/", 1)[-1] or None
        else:
            raise CompositionError(
                f"Attachment '{attachment.filename}' has no path, content or URL"
            )

        filename = attachment.filename or source_name or "attachment"
        content_type = (
            attachment.content_type
            or mimetypes.guess_type(filename)[0]
            or DEFAULT_CONTENT_TYPE
        )
        return data, filename, content_type

    def _read_url(self, url: str) -> bytes:
        if not url.startswith(("http://", "https://")):
            return self._read_file(self._upload_root / url.lstrip("/"))
        LOGGER.debug("Downloading attachment from %s", url)
        try:
            if self._http_client is not None:
                response = self._http_client.get(url, timeout=self._timeout)
            else:
                response = httpx.get(url, timeout=self._timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise CompositionError(f"Unable to download attachment {url}") from exc
        return response.content

    @staticmethod
    def _read_file(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise CompositionError(f"Unable to read attachment {path}") from exc


def _domain_of(address: str) -> str | None:
    _, addr_spec = parseaddr(address)
    if "@" not in addr_spec:
        return None
    return addr_spec.rsplit("@", 1)[1] or None


__all__ = ["DEFAULT_CONTENT_TYPE", "MessageComposer"]
