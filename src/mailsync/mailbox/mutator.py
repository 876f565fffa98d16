"""Per-message state changes addressed by UID under a folder lock."""

from __future__ import annotations

import logging

from ..core.exceptions import MutationError
from ..core.interfaces import MailSession
from ..core.models import DELETED, FLAGGED, IMPORTANT, SEEN, MessageRef
from .locking import mailbox_lock

LOGGER = logging.getLogger(__name__)


class StateMutator:
    """Apply flag changes, moves and deletions through an open session.

    Redundant flag changes are harmless: adding a flag that is already set or
    removing one that is absent succeeds. Nothing is retried.
    """

    def __init__(self, session: MailSession) -> None:
        self._session = session

    def set_read(self, ref: MessageRef, read: bool) -> None:
        self._set_flag("read", ref, SEEN, read)

    def set_starred(self, ref: MessageRef, starred: bool) -> None:
        self._set_flag("starred", ref, FLAGGED, starred)

    def set_important(self, ref: MessageRef, important: bool) -> None:
        self._set_flag("important", ref, IMPORTANT, important)

    def delete(self, ref: MessageRef) -> None:
        """Mark ``ref`` deleted, then expunge it."""
        LOGGER.info("Deleting UID %s from %s", ref.uid, ref.folder)
        with mailbox_lock(self._session, ref.folder):
            try:
                self._session.store_flags(ref.uid, [DELETED], add=True)
                self._session.expunge(ref.uid)
            except MutationError as exc:
                raise MutationError("delete", ref.uid, str(exc)) from exc

    def move(self, ref: MessageRef, destination: str) -> None:
        """Relocate ``ref`` into ``destination``; its UID there will differ."""
        LOGGER.info("Moving UID %s from %s to %s", ref.uid, ref.folder, destination)
        with mailbox_lock(self._session, ref.folder):
            try:
                self._session.move(ref.uid, destination)
            except MutationError as exc:
                raise MutationError("move", ref.uid, str(exc)) from exc

    def _set_flag(self, operation: str, ref: MessageRef, flag: str, value: bool) -> None:
        LOGGER.debug("Setting %s=%s on UID %s in %s", operation, value, ref.uid, ref.folder)
        with mailbox_lock(self._session, ref.folder):
            try:
                self._session.store_flags(ref.uid, [flag], add=value)
            except MutationError as exc:
                raise MutationError(operation, ref.uid, str(exc)) from exc


__all__ = ["StateMutator"]
