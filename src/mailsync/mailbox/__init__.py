"""Folder locking and per-message writes against an open session."""

from .appender import DRAFT_FLAGS, SENT_FLAGS, AppendComposer
from .locking import FolderLock, mailbox_lock, open_session, with_lock
from .mutator import StateMutator

__all__ = [
    "AppendComposer",
    "DRAFT_FLAGS",
    "FolderLock",
    "SENT_FLAGS",
    "StateMutator",
    "mailbox_lock",
    "open_session",
    "with_lock",
]
