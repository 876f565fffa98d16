"""High-level mailbox operations consumed by request handlers and the CLI."""

from __future__ import annotations

import asyncio
import dataclasses
import html
import logging

from .boundary import user_name_from_identity
from .core.config import AppSettings
from .core.exceptions import MailError
from .core.interfaces import MessageParser, SessionFactory
from .core.models import (
    AttachmentContent,
    Credentials,
    DeliveryMode,
    MailPage,
    MessageRef,
    MutationOp,
    OutboundMessage,
)
from .ingestion.attachments import extract_attachment
from .ingestion.category import DomainCategorizer
from .ingestion.fetcher import PageFetcher
from .ingestion.parser import EmailParser
from .mailbox.appender import DRAFT_FLAGS, SENT_FLAGS, AppendComposer
from .mailbox.locking import open_session
from .mailbox.mutator import StateMutator
from .outbound.composer import MessageComposer
from .outbound.delivery import (
    DeliveryService,
    build_welcome_message,
    smtp_transport_factory,
)
from .transport.imap_client import ImapSessionFactory

LOGGER = logging.getLogger(__name__)


class MailService:
    """Entry point for every mailbox operation.

    Each call opens its own session from the supplied credentials, does its
    work under at most one folder lock and closes the session before
    returning, whether or not the work succeeded. Folder names are expected
    in canonical form; see :func:`mailsync.boundary.canonical_folder`.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        session_factory: SessionFactory | None = None,
        delivery: DeliveryService | None = None,
        parser: MessageParser | None = None,
        appender: AppendComposer | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        messages = self._settings.messages
        composer = MessageComposer(
            upload_root=messages.upload_root,
            timeout_seconds=self._settings.smtp.timeout_seconds,
        )
        self._session_factory = session_factory or ImapSessionFactory(
            self._settings.imap
        )
        self._fetcher = PageFetcher(
            parser
            or EmailParser(messages, DomainCategorizer(self._settings.categories))
        )
        self._appender = appender or AppendComposer(composer)
        self._delivery = delivery or DeliveryService(
            smtp_transport_factory(self._settings.smtp),
            self._settings.system_sender,
            composer,
        )

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def default_limit(self, folder: str) -> int:
        """Page size used when the caller gives none: smaller for the inbox."""
        messages = self._settings.messages
        if folder == self._settings.folders.inbox:
            return messages.default_page_size
        return messages.folder_page_size

    def fetch_page(
        self,
        credentials: Credentials,
        folder: str,
        page: int = 1,
        limit: int | None = None,
    ) -> MailPage:
        """Return one newest-first page of ``folder``."""
        limit = limit or self.default_limit(folder)
        with open_session(self._session_factory, credentials) as session:
            return self._fetcher.fetch(
                session,
                folder,
                page,
                limit,
                user_name=user_name_from_identity(credentials.identity),
            )

    def mutate(
        self,
        credentials: Credentials,
        op: MutationOp,
        ref: MessageRef,
        *,
        value: bool = True,
        destination: str | None = None,
    ) -> None:
        """Apply ``op`` to ``ref``.

        ``value`` sets or clears the flag for ``read``, ``starred`` and
        ``important``; ``move`` requires ``destination``.
        """
        if op == "move" and not destination:
            raise ValueError("Move requires a destination folder")
        with open_session(self._session_factory, credentials) as session:
            mutator = StateMutator(session)
            if op == "read":
                mutator.set_read(ref, value)
            elif op == "starred":
                mutator.set_starred(ref, value)
            elif op == "important":
                mutator.set_important(ref, value)
            elif op == "delete":
                mutator.delete(ref)
            elif op == "move" and destination:
                mutator.move(ref, destination)
            else:
                raise ValueError(f"Unknown mutation: {op}")

    def append_draft_or_sent(
        self, credentials: Credentials, folder: str, message: OutboundMessage
    ) -> bool:
        """Persist ``message`` into the Drafts or Sent folder.

        Returns ``False`` when a draft carries no content at all and nothing
        was appended.

        Raises:
            AppendError: If the server refuses the folder or the message.
        """
        is_draft = folder == self._settings.folders.drafts
        if is_draft and message.is_empty:
            LOGGER.info("Draft for %s has no content; not saved", credentials.identity)
            return False

        wrapper = "p" if is_draft else "div"
        message = _ensure_html(message, wrapper)
        if not message.from_address:
            message = dataclasses.replace(message, from_address=credentials.identity)

        flags = DRAFT_FLAGS if is_draft else SENT_FLAGS
        with open_session(self._session_factory, credentials) as session:
            self._appender.append(session, folder, message, flags)
        return True

    def download_attachment(
        self, credentials: Credentials, uid: int, folder: str, index: int
    ) -> AttachmentContent:
        """Fetch attachment ``index`` of message ``uid`` in ``folder``."""
        with open_session(self._session_factory, credentials) as session:
            return extract_attachment(session, folder, uid, index)

    def deliver(
        self,
        credentials: Credentials | None,
        message: OutboundMessage,
        mode: DeliveryMode = "send",
    ) -> OutboundMessage:
        """Send ``message`` and keep a copy in the Sent folder.

        ``credentials=None`` sends from the system identity and keeps no copy.
        A failure to store the Sent copy is logged, never raised, because the
        message has already left.

        Raises:
            DeliveryError: If the message could not be composed or sent.
        """
        message = _ensure_html(message, "div")
        sent = self._delivery.deliver(credentials, message, mode)
        if credentials is None:
            return sent

        if not sent.from_address:
            sent = dataclasses.replace(sent, from_address=credentials.identity)
        sent_folder = self._settings.folders.sent
        try:
            with open_session(self._session_factory, credentials) as session:
                self._appender.append(session, sent_folder, sent, SENT_FLAGS)
        except MailError as exc:
            LOGGER.error(
                "Message delivered but copy to %s failed: %s",
                sent_folder,
                exc,
                exc_info=True,
            )
        return sent

    async def login_and_fetch(
        self, credentials: Credentials, folder: str | None = None
    ) -> MailPage:
        """Fetch the first page after login and greet the user in the background.

        The greeting is a detached task; its outcome never affects the page.
        """
        page = await asyncio.to_thread(
            self.fetch_page, credentials, folder or self._settings.folders.inbox
        )
        if self._settings.system_sender.username:
            self._delivery.schedule_system_message(
                build_welcome_message(credentials.identity)
            )
        else:
            LOGGER.debug("No system sender configured; skipping welcome message")
        return page


def _ensure_html(message: OutboundMessage, tag: str) -> OutboundMessage:
    if message.html or not message.text:
        return message
    wrapped = f"<{tag}>{html.escape(message.text)}</{tag}>"
    return dataclasses.replace(message, html=wrapped)


__all__ = ["MailService"]
