"""Subject and body rewriting for replies and forwards."""

from __future__ import annotations

import dataclasses
import re

from ..core.models import OutboundMessage

REPLY_PREFIX = "Re: "
FORWARD_PREFIX = "Fwd: "
REPLY_SEPARATOR = "--- Original Message ---"
FORWARD_SEPARATOR = "--- Forwarded Message ---"

_TAG = re.compile(r"<[^>]*>?")


def prefix_subject(subject: str | None, prefix: str) -> str:
    """Add ``prefix`` unless the subject already starts with it."""
    subject = subject or ""
    if subject.startswith(prefix):
        return subject
    return f"{prefix}{subject}"


def quote_bodies(
    html: str | None, text: str | None, separator: str
) -> tuple[str, str]:
    """Return ``(html, text)`` with the original content quoted below ``separator``."""
    if html:
        quoted_html = f"{html}<br><br><hr><p><em>{separator}</em></p>{html}"
        quoted_text = text or _TAG.sub("", html)
        return quoted_html, quoted_text
    quoted_text = f"\n\n{separator}\n{text or ''}"
    quoted_html = "<div>" + quoted_text.replace("\n", "<br>") + "</div>"
    return quoted_html, quoted_text


def as_reply(message: OutboundMessage) -> OutboundMessage:
    html, text = quote_bodies(message.html, message.text, REPLY_SEPARATOR)
    return dataclasses.replace(
        message,
        subject=prefix_subject(message.subject, REPLY_PREFIX),
        html=html,
        text=text,
    )


def as_forward(message: OutboundMessage) -> OutboundMessage:
    html, text = quote_bodies(message.html, message.text, FORWARD_SEPARATOR)
    return dataclasses.replace(
        message,
        subject=prefix_subject(message.subject, FORWARD_PREFIX),
        html=html,
        text=text,
    )


__all__ = [
    "FORWARD_PREFIX",
    "FORWARD_SEPARATOR",
    "REPLY_PREFIX",
    "REPLY_SEPARATOR",
    "as_forward",
    "as_reply",
    "prefix_subject",
    "quote_bodies",
]
