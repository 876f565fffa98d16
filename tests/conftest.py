"""Shared fixtures: an in-memory mail store and raw message builders."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.policy import SMTP

import pytest

from mailsync.core.exceptions import AppendError, FolderError, MutationError
from mailsync.core.models import DELETED, Credentials, FetchedMessage


@dataclass
class StoredMessage:
    uid: int
    raw: bytes
    flags: set[str] = field(default_factory=set)


@dataclass
class MailStore:
    """Folders shared by every session opened from one factory."""

    folders: dict[str, list[StoredMessage]] = field(default_factory=dict)
    next_uid: int = 1
    refuse_append: set[str] = field(default_factory=set)

    def add(self, folder: str, raw: bytes, flags: Iterable[str] = ()) -> int:
        uid = self.next_uid
        self.next_uid += 1
        self.folders.setdefault(folder, []).append(StoredMessage(uid, raw, set(flags)))
        return uid

    def uids(self, folder: str) -> list[int]:
        return [message.uid for message in self.folders.get(folder, [])]


class FakeSession:
    """In-memory stand-in for :class:`mailsync.transport.ImapSession`."""

    def __init__(self, store: MailStore) -> None:
        self.store = store
        self.calls: list[tuple[str, ...]] = []
        self.closed = 0
        self._locked: str | None = None

    @property
    def locked_folder(self) -> str | None:
        return self._locked

    def select(self, folder: str, *, readonly: bool = False) -> int:
        self.calls.append(("select", folder, "ro" if readonly else "rw"))
        if self._locked is not None:
            raise FolderError(f"already holding {self._locked}")
        if folder not in self.store.folders:
            raise FolderError(f"no folder {folder}")
        self._locked = folder
        return len(self.store.folders[folder])

    def unselect(self) -> None:
        self.calls.append(("unselect",))
        self._locked = None

    def noop(self) -> None:
        self.calls.append(("noop",))

    def fetch_range(self, start: int, end: int) -> Iterator[FetchedMessage]:
        self.calls.append(("fetch", f"{start}:{end}"))
        messages = self.store.folders[self._require()]
        for sequence in range(start, end + 1):
            yield self._fetched(sequence, messages[sequence - 1])

    def fetch_uid(self, uid: int) -> FetchedMessage | None:
        messages = self.store.folders[self._require()]
        for sequence, message in enumerate(messages, start=1):
            if message.uid == uid:
                return self._fetched(sequence, message)
        return None

    def store_flags(self, uid: int, flags: Sequence[str], *, add: bool) -> None:
        self.calls.append(("store", str(uid), "+" if add else "-", *flags))
        message = self._find(uid)
        if add:
            message.flags.update(flags)
        else:
            message.flags.difference_update(flags)

    def expunge(self, uid: int) -> None:
        self.calls.append(("expunge", str(uid)))
        folder = self._require()
        self.store.folders[folder] = [
            message
            for message in self.store.folders[folder]
            if DELETED not in message.flags
        ]

    def move(self, uid: int, destination: str) -> None:
        self.calls.append(("move", str(uid), destination))
        message = self._find(uid)
        self.store.folders[self._require()].remove(message)
        self.store.add(destination, message.raw, message.flags)

    def append(self, folder: str, raw: bytes, flags: Iterable[str]) -> None:
        flags = tuple(flags)
        self.calls.append(("append", folder, *flags))
        if folder in self.store.refuse_append:
            raise AppendError(folder, "refused")
        self.store.add(folder, raw, flags)

    def close(self) -> None:
        self.closed += 1

    def _require(self) -> str:
        if self._locked is None:
            raise FolderError("nothing selected")
        return self._locked

    def _find(self, uid: int) -> StoredMessage:
        for message in self.store.folders[self._require()]:
            if message.uid == uid:
                return message
        raise MutationError("store", uid, "no such message")

    @staticmethod
    def _fetched(sequence: int, message: StoredMessage) -> FetchedMessage:
        return FetchedMessage(
            sequence=sequence,
            uid=message.uid,
            flags=frozenset(message.flags),
            internal_date=None,
            raw=message.raw,
        )


class FakeSessionFactory:
    def __init__(self, store: MailStore) -> None:
        self.store = store
        self.sessions: list[FakeSession] = []
        self.credentials: list[Credentials] = []

    def open(self, credentials: Credentials) -> FakeSession:
        self.credentials.append(credentials)
        session = FakeSession(self.store)
        self.sessions.append(session)
        return session


@pytest.fixture
def store() -> MailStore:
    return MailStore(folders={"INBOX": [], "Sent": [], "Drafts": [], "Archive": []})


@pytest.fixture
def session(store: MailStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def session_factory(store: MailStore) -> FakeSessionFactory:
    return FakeSessionFactory(store)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials("jane.doe@example.com", "hunter2")


def build_raw(
    *,
    sender: str = "Alice Example <alice@acmecorp.io>",
    to: str = "jane.doe@example.com",
    subject: str = "Quarterly report",
    text: str | None = "Hello Jane,\nthe report is attached.",
    html: str | None = None,
    attachments: Sequence[tuple[str, str, bytes]] = (),
) -> bytes:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to
    message["Subject"] = subject
    message["Date"] = "Mon, 06 May 2024 09:30:00 +0000"
    if text is not None:
        message.set_content(text)
    if html is not None:
        if text is None:
            message.set_content(html, subtype="html")
        else:
            message.add_alternative(html, subtype="html")
    for filename, content_type, data in attachments:
        maintype, subtype = content_type.split("/")
        message.add_attachment(data, maintype=maintype, subtype=subtype, filename=filename)
    return message.as_bytes(policy=SMTP)


@pytest.fixture
def raw_message() -> Callable[..., bytes]:
    return build_raw
