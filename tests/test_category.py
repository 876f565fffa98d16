"""Tests for the sender-domain categorisation heuristic."""

from __future__ import annotations

import pytest

from mailsync.core.config import CategorySettings
from mailsync.ingestion.category import DomainCategorizer, categorize_email, extract_domain


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("news@mailchimp.com", "promotions"),
        ("deals@email.amazon.co.uk", "promotions"),
        ("boss@acmecorp.io", "work"),
        ("bob@family.example.co.uk", "personal"),
        ("", "personal"),
        (None, "personal"),
        ("not-an-address", "personal"),
    ],
)
def test_categorize_email(address: str | None, expected: str) -> None:
    assert categorize_email(address) == expected


def test_well_known_providers_are_classified_as_work() -> None:
    # Current product behaviour, kept until the intended mapping is settled.
    assert categorize_email("friend@gmail.com") == "work"
    assert categorize_email("friend@ICLOUD.com") == "work"


def test_consumer_marker_blocks_business_shape() -> None:
    assert categorize_email("someone@uk.yahoo.net") == "personal"


def test_injected_table_changes_outcome() -> None:
    table = CategorySettings(version=2, promotional_keywords=("acmecorp",))
    categorizer = DomainCategorizer(table)

    assert categorizer.version == 2
    assert categorizer.categorize("boss@acmecorp.io") == "promotions"
    assert categorizer.color_for("promotions") == "#2D62ED"


def test_colors_per_category() -> None:
    categorizer = DomainCategorizer()

    assert categorizer.color_for("work") == "#34A853"
    assert categorizer.color_for("personal") == "#FFB800"


def test_extract_domain_lowercases() -> None:
    assert extract_domain("Alice@Example.COM") == "example.com"
    assert extract_domain("alice@") is None
