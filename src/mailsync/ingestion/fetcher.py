"""Page fetch orchestration: lock, window, stream, normalize."""

from __future__ import annotations

import logging

from ..core.exceptions import ParseError
from ..core.interfaces import MailSession, MessageParser
from ..core.models import Email, MailPage
from ..mailbox.locking import mailbox_lock
from .pagination import build_pagination, compute_range

LOGGER = logging.getLogger(__name__)


class PageFetcher:
    """Read one newest-first page of a folder through an open session."""

    def __init__(self, parser: MessageParser) -> None:
        self._parser = parser

    def fetch(
        self,
        session: MailSession,
        folder: str,
        page: int,
        limit: int,
        *,
        user_name: str = "",
    ) -> MailPage:
        """Return page ``page`` of ``folder``.

        The folder count read when the lock is taken drives the window; a
        message that fails to parse is logged and skipped so the rest of the
        page still completes.
        """
        mails: list[Email] = []
        skipped: list[int] = []
        with mailbox_lock(session, folder, readonly=True) as lock:
            total = lock.total
            session.noop()
            window = compute_range(total, page, limit)
            LOGGER.info(
                "Fetching %s page %s (limit %s, total %s, range %s)",
                folder,
                page,
                limit,
                total,
                window or "empty",
            )
            if window is not None:
                for message in session.fetch_range(window.start, window.end):
                    try:
                        mails.append(self._parser.parse(message, folder))
                    except ParseError as exc:
                        LOGGER.warning(
                            "Skipping unparseable message UID %s in %s: %s",
                            message.uid,
                            folder,
                            exc,
                        )
                        skipped.append(message.uid)

        # Servers stream ascending sequence numbers; present newest first.
        mails.reverse()
        return MailPage(
            folder=folder,
            user_name=user_name,
            mails=mails,
            pagination=build_pagination(total, page, limit),
            skipped=tuple(skipped),
        )


__all__ = ["PageFetcher"]
