"""Tests for reply and forward rewriting."""

from __future__ import annotations

from mailsync.core.models import OutboundMessage
from mailsync.outbound.quoting import as_forward, as_reply, prefix_subject


def test_prefix_is_not_repeated() -> None:
    assert prefix_subject("hi", "Re: ") == "Re: hi"
    assert prefix_subject("Re: hi", "Re: ") == "Re: hi"
    assert prefix_subject(None, "Fwd: ") == "Fwd: "


def test_reply_quotes_html_and_strips_tags_for_text() -> None:
    message = OutboundMessage(
        from_address="jane@example.com", to="bob@example.org", subject="Re: hi", html="<b>ok</b>"
    )

    reply = as_reply(message)

    assert reply.subject == "Re: hi"
    assert reply.html == "<b>ok</b><br><br><hr><p><em>--- Original Message ---</em></p><b>ok</b>"
    assert reply.text == "ok"


def test_forward_of_plain_text_builds_both_variants() -> None:
    message = OutboundMessage(
        from_address="jane@example.com", to="carol@example.org", subject="notes", text="a\nb"
    )

    forwarded = as_forward(message)

    assert forwarded.subject == "Fwd: notes"
    assert forwarded.text == "\n\n--- Forwarded Message ---\na\nb"
    assert forwarded.html == "<div><br><br>--- Forwarded Message ---<br>a<br>b</div>"
    assert forwarded.to == "carol@example.org"
