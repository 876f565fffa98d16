"""Tests for page fetch orchestration."""

from __future__ import annotations

from mailsync.ingestion.fetcher import PageFetcher
from mailsync.ingestion.parser import EmailParser

BROKEN = (
    b"From: a@example.com\r\n"
    b'Content-Type: multipart/mixed; boundary="XYZ"\r\n'
    b"\r\n"
    b"no boundary\r\n"
)


def test_first_page_is_newest_first(session, store, raw_message) -> None:
    uids = [store.add("INBOX", raw_message(subject=f"message {n}")) for n in range(1, 26)]

    page = PageFetcher(EmailParser()).fetch(session, "INBOX", 1, 10, user_name="Jane Doe")

    assert [mail.id for mail in page.mails] == list(reversed(uids[15:]))
    assert page.mails[0].subject == "message 25"
    assert page.user_name == "Jane Doe"
    assert page.pagination.total == 25
    assert page.pagination.has_next is True
    assert ("fetch", "16:25") in session.calls


def test_fetch_is_read_only_and_refreshes(session, store, raw_message) -> None:
    store.add("INBOX", raw_message())

    PageFetcher(EmailParser()).fetch(session, "INBOX", 1, 10)

    assert session.calls[:2] == [("select", "INBOX", "ro"), ("noop",)]
    assert session.calls[-1] == ("unselect",)
    assert store.folders["INBOX"][0].flags == set()


def test_page_past_end_fetches_nothing(session, store, raw_message) -> None:
    for _ in range(25):
        store.add("INBOX", raw_message())

    page = PageFetcher(EmailParser()).fetch(session, "INBOX", 4, 10)

    assert page.mails == []
    assert page.pagination.has_next is False
    assert not [call for call in session.calls if call[0] == "fetch"]


def test_unparseable_message_is_skipped(session, store, raw_message, caplog) -> None:
    first = store.add("Archive", raw_message(subject="ok one"))
    broken = store.add("Archive", BROKEN)
    last = store.add("Archive", raw_message(subject="ok two"))

    page = PageFetcher(EmailParser()).fetch(session, "Archive", 1, 20)

    assert [mail.id for mail in page.mails] == [last, first]
    assert page.skipped == (broken,)
    assert "Skipping unparseable message" in caplog.text
