"""Newest-first windowing over a folder's sequence-number space."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.models import Pagination


@dataclass(frozen=True, slots=True)
class SequenceRange:
    """Inclusive range of sequence numbers, ``start <= end``."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}:{self.end}"


def compute_range(total: int, page: int, limit: int) -> SequenceRange | None:
    """Return the sequence range for a 1-indexed page, or ``None`` when empty.

    Page 1 covers the ``limit`` highest sequence numbers; later pages walk
    towards 1. A page past the end of the folder yields ``None``.
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if total <= 0:
        return None
    offset = (page - 1) * limit
    start = max(1, total - offset - limit + 1)
    end = min(total, total - offset)
    if start > end:
        return None
    return SequenceRange(start=start, end=end)


def build_pagination(total: int, page: int, limit: int) -> Pagination:
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        has_next=page * limit < total,
        has_prev=page > 1,
    )


__all__ = ["SequenceRange", "build_pagination", "compute_range"]
