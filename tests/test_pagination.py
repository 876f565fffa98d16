"""Tests for newest-first sequence windowing."""

from __future__ import annotations

import pytest

from mailsync.ingestion.pagination import SequenceRange, build_pagination, compute_range


@pytest.mark.parametrize(
    ("page", "expected"),
    [(1, (16, 25)), (2, (6, 15)), (3, (1, 5))],
)
def test_compute_range_walks_back_from_newest(page: int, expected: tuple[int, int]) -> None:
    window = compute_range(25, page, 10)

    assert window == SequenceRange(*expected)


def test_page_past_the_end_is_empty() -> None:
    assert compute_range(25, 4, 10) is None

    pagination = build_pagination(25, 4, 10)
    assert pagination.has_next is False
    assert pagination.has_prev is True


def test_empty_folder_has_no_window() -> None:
    assert compute_range(0, 1, 10) is None

    pagination = build_pagination(0, 1, 10)
    assert pagination.total == 0
    assert pagination.has_next is False
    assert pagination.has_prev is False


def test_empty_folder_beyond_first_page_still_has_previous() -> None:
    assert compute_range(0, 3, 10) is None

    pagination = build_pagination(0, 3, 10)
    assert pagination.total == 0
    assert pagination.has_next is False
    assert pagination.has_prev is True


def test_pagination_flags_on_first_page() -> None:
    pagination = build_pagination(25, 1, 10)

    assert pagination.has_next is True
    assert pagination.has_prev is False


def test_exact_multiple_has_no_next_page() -> None:
    assert build_pagination(20, 2, 10).has_next is False
    assert compute_range(20, 2, 10) == SequenceRange(1, 10)


def test_sequence_range_renders_imap_set() -> None:
    window = SequenceRange(16, 25)

    assert str(window) == "16:25"
    assert len(window) == 10


@pytest.mark.parametrize(("page", "limit"), [(0, 10), (1, 0)])
def test_invalid_window_arguments(page: int, limit: int) -> None:
    with pytest.raises(ValueError):
        compute_range(10, page, limit)
