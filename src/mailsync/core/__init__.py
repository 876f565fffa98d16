"""Core utilities for configuration, logging, models and errors."""

from .config import AppSettings, FolderSettings, MessageSettings, load_app_settings
from .exceptions import MailError
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "FolderSettings",
    "MailError",
    "MessageSettings",
    "configure_logging",
    "load_app_settings",
]
