"""Scoped acquisition of sessions and folder locks."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TypeVar

from ..core.interfaces import MailSession, SessionFactory
from ..core.models import Credentials

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class FolderLock:
    """Exclusive hold on one folder within one session."""

    folder: str
    total: int
    readonly: bool


@contextmanager
def open_session(
    factory: SessionFactory, credentials: Credentials
) -> Iterator[MailSession]:
    """Open a session for one logical operation and always close it."""
    session = factory.open(credentials)
    try:
        yield session
    finally:
        try:
            session.close()
        except Exception:  # pylint: disable=broad-except
            LOGGER.warning(
                "Closing session for %s failed", credentials.identity, exc_info=True
            )


@contextmanager
def mailbox_lock(
    session: MailSession, folder: str, *, readonly: bool = False
) -> Iterator[FolderLock]:
    """Hold ``folder`` for the duration of the ``with`` block.

    The folder count captured on entry is what pagination works from. Only one
    folder may be held per session; a second acquisition raises
    :class:`~mailsync.core.exceptions.FolderError`.
    """
    total = session.select(folder, readonly=readonly)
    LOGGER.debug("Acquired lock on %s (%s messages)", folder, total)
    try:
        yield FolderLock(folder=folder, total=total, readonly=readonly)
    finally:
        session.unselect()
        LOGGER.debug("Released lock on %s", folder)


def with_lock(
    session: MailSession,
    folder: str,
    fn: Callable[[FolderLock], T],
    *,
    readonly: bool = False,
) -> T:
    """Run ``fn`` while holding ``folder`` and return its result."""
    with mailbox_lock(session, folder, readonly=readonly) as lock:
        return fn(lock)


__all__ = ["FolderLock", "mailbox_lock", "open_session", "with_lock"]
