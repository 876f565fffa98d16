"""IMAP transport adapter providing per-operation mailbox sessions."""

from __future__ import annotations

import base64
import imaplib
import logging
import re
import ssl
import time
from collections.abc import Iterable, Iterator, Sequence
from datetime import UTC, datetime
from itertools import groupby
from types import TracebackType

from ..core.config import ImapSettings
from ..core.exceptions import (
    AppendError,
    AuthenticationError,
    FolderError,
    MailConnectionError,
    MessageNotFoundError,
    MutationError,
)
from ..core.interfaces import MailSession
from ..core.models import Credentials, FetchedMessage

LOGGER = logging.getLogger(__name__)

FETCH_ITEMS = "(UID FLAGS INTERNALDATE BODY.PEEK[])"

_UID_PATTERN = re.compile(rb"UID (\d+)")
_SEQUENCE_PATTERN = re.compile(rb"^(\d+) ")


class ImapSession(MailSession):
    """Thin wrapper around ``imaplib`` bound to one authenticated login.

    A session selects at most one folder at a time. Selection is driven by
    :mod:`mailsync.mailbox.locking`; commands that need a folder fail when
    nothing is selected.
    """

    def __init__(
        self,
        connection: imaplib.IMAP4,
        identity: str,
        capabilities: Iterable[str] | None = None,
    ) -> None:
        """Wrap an already authenticated ``imaplib`` connection.

        ``capabilities`` should be the post-login CAPABILITY list; it defaults
        to whatever the connection recorded from the greeting.
        """
        self._connection: imaplib.IMAP4 | None = connection
        self._identity = identity
        if capabilities is None:
            capabilities = connection.capabilities
        self._capabilities = frozenset(name.upper() for name in capabilities)
        self._locked_folder: str | None = None

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> ImapSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure resources are released on context exit."""
        self.close()

    @property
    def locked_folder(self) -> str | None:
        return self._locked_folder

    @property
    def closed(self) -> bool:
        return self._connection is None

    # Folder selection ---------------------------------------------------------
    def select(self, folder: str, *, readonly: bool = False) -> int:
        """Select ``folder`` and return the number of messages it holds."""
        connection = self._require_connection()
        if self._locked_folder is not None:
            raise FolderError(
                f"Session already holds '{self._locked_folder}'; "
                f"cannot lock '{folder}' concurrently"
            )
        LOGGER.debug(
            "Selecting folder %s (readonly=%s) for %s", folder, readonly, self._identity
        )
        try:
            status, data = connection.select(_quote(folder), readonly=readonly)
        except imaplib.IMAP4.readonly as exc:
            raise FolderError(f"Folder '{folder}' is not writable") from exc
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError(f"Connection lost selecting '{folder}'") from exc
        except imaplib.IMAP4.error as exc:
            raise FolderError(f"Unable to select folder '{folder}': {exc}") from exc
        if status != "OK":
            raise FolderError(f"Unable to select folder '{folder}'")
        self._locked_folder = folder
        return _parse_count(data)

    def unselect(self) -> None:
        """Release the selected folder without expunging anything."""
        if self._connection is None or self._locked_folder is None:
            self._locked_folder = None
            return
        folder = self._locked_folder
        self._locked_folder = None
        try:
            if "UNSELECT" in self._capabilities:
                self._connection.unselect()
            else:
                self._connection.close()
        except imaplib.IMAP4.error:  # pragma: no cover - depends on server state
            LOGGER.debug("Releasing folder %s raised; continuing", folder)

    def noop(self) -> None:
        connection = self._require_connection()
        try:
            connection.noop()
        except imaplib.IMAP4.error as exc:
            raise MailConnectionError("NOOP failed") from exc

    # Reads --------------------------------------------------------------------
    def fetch_range(self, start: int, end: int) -> Iterator[FetchedMessage]:
        """Yield messages in sequence range ``start:end`` in server order."""
        connection = self._require_folder()
        LOGGER.debug("Fetching sequence range %s:%s", start, end)
        try:
            status, data = connection.fetch(f"{start}:{end}", FETCH_ITEMS)
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError("Connection lost during FETCH") from exc
        except imaplib.IMAP4.error as exc:
            raise FolderError(f"FETCH {start}:{end} failed: {exc}") from exc
        if status != "OK":
            raise FolderError(f"FETCH {start}:{end} failed")
        yield from _iter_fetched(data)

    def fetch_uid(self, uid: int) -> FetchedMessage | None:
        """Return the message with ``uid`` or ``None`` when it does not exist."""
        connection = self._require_folder()
        LOGGER.debug("Fetching UID %s", uid)
        try:
            status, data = connection.uid("FETCH", str(uid), FETCH_ITEMS)
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError("Connection lost during UID FETCH") from exc
        except imaplib.IMAP4.error as exc:
            raise MessageNotFoundError(f"UID FETCH {uid} failed: {exc}") from exc
        if status != "OK":
            raise MessageNotFoundError(f"UID FETCH {uid} failed")
        for message in _iter_fetched(data):
            if message.uid == uid:
                return message
        return None

    # Writes -------------------------------------------------------------------
    def store_flags(self, uid: int, flags: Sequence[str], *, add: bool) -> None:
        connection = self._require_folder()
        mode = "+FLAGS.SILENT" if add else "-FLAGS.SILENT"
        flag_list = f"({' '.join(flags)})"
        LOGGER.debug("STORE %s %s on UID %s", mode, flag_list, uid)
        try:
            status, _ = connection.uid("STORE", str(uid), mode, flag_list)
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError("Connection lost during STORE") from exc
        except imaplib.IMAP4.error as exc:
            raise MutationError("store", uid, str(exc)) from exc
        if status != "OK":
            raise MutationError("store", uid, f"{mode} {flag_list} rejected")

    def expunge(self, uid: int) -> None:
        """Purge deleted messages, limited to ``uid`` when UIDPLUS is available."""
        connection = self._require_folder()
        try:
            if "UIDPLUS" in self._capabilities:
                status, _ = connection.uid("EXPUNGE", str(uid))
            else:
                status, _ = connection.expunge()
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError("Connection lost during EXPUNGE") from exc
        except imaplib.IMAP4.error as exc:
            raise MutationError("expunge", uid, str(exc)) from exc
        if status != "OK":
            raise MutationError("expunge", uid)

    def move(self, uid: int, destination: str) -> None:
        """Move ``uid`` to ``destination``, falling back to COPY when needed."""
        connection = self._require_folder()
        uid_str = str(uid)
        target = _quote(destination)
        LOGGER.debug("Moving UID %s to %s", uid_str, destination)
        try:
            if "MOVE" in self._capabilities:
                status, _ = connection.uid("MOVE", uid_str, target)
                if status == "OK":
                    return
            status, _ = connection.uid("COPY", uid_str, target)
            if status != "OK":
                raise MutationError("move", uid, f"COPY to '{destination}' rejected")
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError("Connection lost during MOVE") from exc
        except imaplib.IMAP4.error as exc:
            raise MutationError("move", uid, str(exc)) from exc
        self.store_flags(uid, [r"\Deleted"], add=True)
        self.expunge(uid)

    def append(self, folder: str, raw: bytes, flags: Iterable[str]) -> None:
        connection = self._require_connection()
        flag_list = f"({' '.join(flags)})"
        LOGGER.debug("Appending %d bytes to %s with %s", len(raw), folder, flag_list)
        try:
            status, data = connection.append(
                _quote(folder),
                flag_list,
                imaplib.Time2Internaldate(time.time()),
                raw,
            )
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError("Connection lost during APPEND") from exc
        except imaplib.IMAP4.error as exc:
            raise AppendError(folder, str(exc)) from exc
        if status != "OK":
            raise AppendError(folder, _describe(data))

    # Lifecycle ----------------------------------------------------------------
    def close(self) -> None:
        """Terminate the IMAP session. Calling it again is a no-op."""
        if self._connection is None:
            return
        connection = self._connection
        try:
            self.unselect()
        finally:
            self._connection = None
            try:
                LOGGER.debug("Logging out %s", self._identity)
                connection.logout()
            except (imaplib.IMAP4.error, OSError):  # pragma: no cover
                LOGGER.debug("IMAP logout raised; suppressing during shutdown")

    # Internal helpers ---------------------------------------------------------
    def _require_connection(self) -> imaplib.IMAP4:
        if self._connection is None:
            raise MailConnectionError("IMAP session has been closed")
        return self._connection

    def _require_folder(self) -> imaplib.IMAP4:
        connection = self._require_connection()
        if self._locked_folder is None:
            raise FolderError("No folder is selected in this session")
        return connection


class ImapSessionFactory:
    """Open a fresh authenticated :class:`ImapSession` for every call."""

    def __init__(self, settings: ImapSettings) -> None:
        self._settings = settings

    def open(self, credentials: Credentials) -> ImapSession:
        """Connect and log in. No retry is attempted."""
        settings = self._settings
        LOGGER.debug(
            "Connecting to IMAP host %s:%s (ssl=%s)",
            settings.host,
            settings.port,
            settings.use_ssl,
        )
        try:
            connection: imaplib.IMAP4
            if settings.use_ssl:
                connection = imaplib.IMAP4_SSL(
                    settings.host,
                    settings.port,
                    ssl_context=_ssl_context(settings.verify_tls),
                    timeout=settings.timeout_seconds,
                )
            else:
                connection = imaplib.IMAP4(
                    settings.host, settings.port, timeout=settings.timeout_seconds
                )
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailConnectionError(
                f"Failed to connect to IMAP server {settings.host}:{settings.port}"
            ) from exc

        try:
            LOGGER.debug("Authenticating as %s", credentials.identity)
            connection.login(credentials.identity, credentials.secret)
        except imaplib.IMAP4.abort as exc:
            _shutdown(connection)
            raise MailConnectionError("Connection lost during login") from exc
        except imaplib.IMAP4.error as exc:
            _shutdown(connection)
            raise AuthenticationError(
                f"IMAP login rejected for {credentials.identity}"
            ) from exc
        except OSError as exc:
            _shutdown(connection)
            raise MailConnectionError("Network error during login") from exc
        capabilities = _refresh_capabilities(connection)
        LOGGER.debug("Server capabilities for %s: %s", credentials.identity, capabilities)
        return ImapSession(connection, credentials.identity, capabilities)


def _ssl_context(verify: bool) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _shutdown(connection: imaplib.IMAP4) -> None:
    try:
        connection.shutdown()
    except OSError:  # pragma: no cover
        LOGGER.debug("Socket shutdown raised after failed login")


def _refresh_capabilities(connection: imaplib.IMAP4) -> tuple[str, ...]:
    """Re-read CAPABILITY once authenticated.

    ``imaplib`` only records the greeting's list, and many servers advertise
    UIDPLUS, MOVE or UNSELECT only after login.
    """
    try:
        status, data = connection.capability()
    except imaplib.IMAP4.abort as exc:
        _shutdown(connection)
        raise MailConnectionError("Connection lost reading capabilities") from exc
    except imaplib.IMAP4.error:
        LOGGER.debug("CAPABILITY rejected after login; keeping greeting list")
        return tuple(connection.capabilities)
    if status != "OK" or not data or not isinstance(data[-1], bytes):
        LOGGER.debug("No CAPABILITY data after login; keeping greeting list")
        return tuple(connection.capabilities)
    capabilities = tuple(data[-1].decode("ascii", "replace").upper().split())
    connection.capabilities = capabilities
    return capabilities


def _encode_mailbox(name: str) -> str:
    """Encode a folder name as IMAP modified UTF-7 (RFC 3501 section 5.1.3)."""
    parts: list[str] = []
    for printable, run in groupby(name, key=lambda char: 0x20 <= ord(char) <= 0x7E):
        chunk = "".join(run)
        if printable:
            parts.append(chunk.replace("&", "&-"))
            continue
        encoded = base64.b64encode(chunk.encode("utf-16-be")).decode("ascii")
        parts.append("&" + encoded.rstrip("=").replace("/", ",") + "-")
    return "".join(parts)


def _quote(folder: str) -> str:
    """Quote a folder name for use as an IMAP astring."""
    escaped = _encode_mailbox(folder).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _parse_count(data: list[bytes | None] | None) -> int:
    if not data or data[0] is None:
        return 0
    try:
        return int(data[0])
    except (TypeError, ValueError):
        return 0


def _describe(data: object) -> str:
    if isinstance(data, list) and data and isinstance(data[0], bytes):
        return data[0].decode(errors="replace")
    return str(data)


def _iter_fetched(data: list[tuple[bytes, bytes] | bytes | None]) -> Iterator[FetchedMessage]:
    """Group ``imaplib`` FETCH response chunks into :class:`FetchedMessage`.

    Each message arrives as a ``(meta, literal)`` tuple followed by a bytes
    chunk closing the parenthesised list; some servers place ``UID`` or
    ``FLAGS`` in that trailing chunk, so it is merged into the metadata.
    """
    meta: bytes | None = None
    payload: bytes | None = None
    for entry in data or []:
        if isinstance(entry, tuple) and len(entry) == 2:
            if meta is not None and payload is not None:
                message = _build_fetched(meta, payload)
                if message is not None:
                    yield message
            meta, payload = entry[0], entry[1]
        elif isinstance(entry, bytes) and meta is not None:
            meta += b" " + entry
    if meta is not None and payload is not None:
        message = _build_fetched(meta, payload)
        if message is not None:
            yield message


def _build_fetched(meta: bytes, payload: bytes) -> FetchedMessage | None:
    uid_match = _UID_PATTERN.search(meta)
    if uid_match is None:
        LOGGER.warning("FETCH response without UID: %r", meta[:80])
        return None
    sequence_match = _SEQUENCE_PATTERN.match(meta)
    flags = frozenset(flag.decode() for flag in imaplib.ParseFlags(meta))
    return FetchedMessage(
        sequence=int(sequence_match.group(1)) if sequence_match else 0,
        uid=int(uid_match.group(1)),
        flags=flags,
        internal_date=_parse_internal_date(meta),
        raw=payload,
    )


def _parse_internal_date(meta: bytes) -> datetime | None:
    parsed = imaplib.Internaldate2tuple(meta)
    if parsed is None:
        return None
    return datetime.fromtimestamp(time.mktime(parsed), tz=UTC)


__all__ = ["FETCH_ITEMS", "ImapSession", "ImapSessionFactory"]
