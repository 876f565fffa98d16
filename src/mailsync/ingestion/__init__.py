"""Read path: pagination, normalization and attachment extraction."""

from .attachments import extract_attachment
from .category import DomainCategorizer, categorize_email
from .fetcher import PageFetcher
from .pagination import SequenceRange, build_pagination, compute_range
from .parser import EmailParser

__all__ = [
    "DomainCategorizer",
    "EmailParser",
    "PageFetcher",
    "SequenceRange",
    "build_pagination",
    "categorize_email",
    "compute_range",
    "extract_attachment",
]
