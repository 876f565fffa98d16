"""Best-effort sender-domain categorisation.

The heuristic only looks at the sender's domain and is not an authoritative
classification. Its keyword and provider lists come from an injected
:class:`~mailsync.core.config.CategorySettings` table so they can be tuned and
versioned independently of the parser.

Note that addresses at the well-known provider domains (``gmail.com`` and
friends) are classified as ``work``. That mapping is kept exactly as the
product currently behaves until its intent is clarified.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..core.config import CategorySettings
from ..core.models import Category

_DEFAULT_TABLE = CategorySettings()


class DomainCategorizer:
    """Assign ``work``/``personal``/``promotions`` from a sender address."""

    def __init__(self, table: CategorySettings | None = None) -> None:
        self._table = table or _DEFAULT_TABLE
        self._providers = frozenset(d.lower() for d in self._table.provider_domains)

    @property
    def version(self) -> int:
        return self._table.version

    def categorize(self, address: str | None) -> Category:
        domain = extract_domain(address)
        if not domain:
            return "personal"
        table = self._table

        if _contains_any(table.promotional_keywords, domain):
            return "promotions"
        if domain in self._providers:
            return "work"

        labels = domain.split(".")
        if table.min_labels <= len(labels) <= table.max_labels and not _contains_any(
            table.consumer_markers, domain
        ):
            return "work"
        return "personal"

    def color_for(self, category: Category) -> str:
        return self._table.colors.get(category, self._table.colors.get("personal", ""))


def extract_domain(address: str | None) -> str | None:
    """Return the lower-cased part after the first ``@``, if any."""
    if not address:
        return None
    parts = address.lower().split("@")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def categorize_email(
    address: str | None, table: CategorySettings | None = None
) -> Category:
    """Convenience wrapper around :class:`DomainCategorizer`."""
    return DomainCategorizer(table).categorize(address)


def _contains_any(keywords: Iterable[str], haystack: str) -> bool:
    for keyword in keywords:
        if keyword in haystack:
            return True
    return False


__all__ = ["DomainCategorizer", "categorize_email", "extract_domain"]
