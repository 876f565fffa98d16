"""Conversions between HTML and plain-text message bodies."""

from __future__ import annotations

import html
import re

import html2text

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def html_to_text(markup: str) -> str:
    """Render HTML into readable plain text."""
    converter = html2text.HTML2Text()
    converter.ignore_images = True
    converter.ignore_emphasis = True
    converter.body_width = 0
    return converter.handle(markup).strip()


def text_to_html(text: str) -> str:
    """Render plain text as simple HTML paragraphs."""
    paragraphs = [p for p in _PARAGRAPH_BREAK.split(text.strip()) if p.strip()]
    rendered = (
        "<p>" + html.escape(p.strip()).replace("\n", "<br/>") + "</p>"
        for p in paragraphs
    )
    return "".join(rendered)


__all__ = ["html_to_text", "text_to_html"]
