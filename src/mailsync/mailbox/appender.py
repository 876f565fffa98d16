"""Append composed messages into server-side folders (Drafts, Sent)."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..core.exceptions import AppendError, CompositionError, FolderError
from ..core.interfaces import MailSession
from ..core.models import DRAFT, SEEN, OutboundMessage
from ..outbound.composer import MessageComposer
from .locking import mailbox_lock

LOGGER = logging.getLogger(__name__)

SENT_FLAGS: tuple[str, ...] = (SEEN,)
DRAFT_FLAGS: tuple[str, ...] = (SEEN, DRAFT)


class AppendComposer:
    """Serialize an :class:`OutboundMessage` and append it to a folder."""

    def __init__(self, composer: MessageComposer | None = None) -> None:
        self._composer = composer or MessageComposer()

    def append(
        self,
        session: MailSession,
        folder: str,
        message: OutboundMessage,
        flags: Sequence[str],
    ) -> None:
        """Append ``message`` into ``folder`` tagged with ``flags``.

        Raises:
            AppendError: If the message cannot be composed or the server
                refuses the folder or the APPEND command.
        """
        try:
            raw = self._composer.to_bytes(message)
        except CompositionError as exc:
            raise AppendError(folder, str(exc)) from exc

        try:
            with mailbox_lock(session, folder):
                session.append(folder, raw, flags)
        except FolderError as exc:
            raise AppendError(folder, str(exc)) from exc
        LOGGER.info("Appended %d bytes to %s with %s", len(raw), folder, list(flags))


__all__ = ["AppendComposer", "DRAFT_FLAGS", "SENT_FLAGS"]
