"""Tests for appending composed messages into folders."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from mailsync.core.exceptions import AppendError, FolderError
from mailsync.core.models import DRAFT, SEEN, OutboundAttachment, OutboundMessage
from mailsync.mailbox.appender import DRAFT_FLAGS, SENT_FLAGS, AppendComposer


def test_flag_sets() -> None:
    assert SENT_FLAGS == (SEEN,)
    assert DRAFT_FLAGS == (SEEN, DRAFT)


def test_append_serializes_full_message(session, store) -> None:
    message = OutboundMessage(
        from_address="jane.doe@example.com",
        to="bob@example.org",
        subject="Plans",
        html="<p>See you</p>",
    )

    AppendComposer().append(session, "Drafts", message, DRAFT_FLAGS)

    stored = store.folders["Drafts"][0]
    assert stored.flags == {SEEN, DRAFT}
    assert b"Subject: Plans" in stored.raw
    assert b"\r\n" in stored.raw
    assert session.locked_folder is None


def test_unreadable_attachment_is_append_error(session, tmp_path) -> None:
    message = OutboundMessage(
        from_address="jane.doe@example.com",
        to="bob@example.org",
        attachments=(OutboundAttachment(path=tmp_path / "missing.pdf"),),
    )

    with pytest.raises(AppendError) as excinfo:
        AppendComposer().append(session, "Sent", message, SENT_FLAGS)
    assert excinfo.value.folder == "Sent"


def test_missing_folder_is_append_error() -> None:
    session = MagicMock()
    session.select.side_effect = FolderError("no Drafts")
    message = OutboundMessage(from_address="a@example.com", to="b@example.com")

    with pytest.raises(AppendError):
        AppendComposer().append(session, "Drafts", message, DRAFT_FLAGS)
    session.append.assert_not_called()
