"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field


class ImapSettings(BaseModel):
    """Settings controlling IMAP connectivity."""

    host: str = Field(default="imap.cybershoora.com", description="IMAP hostname")
    port: int = Field(default=993, description="IMAP port, typically 993 for SSL")
    use_ssl: bool = Field(default=True, description="Whether to connect over SSL")
    verify_tls: bool = Field(
        default=True, description="Verify the server certificate chain"
    )
    timeout_seconds: float = Field(
        default=30, gt=0, description="Socket timeout for IMAP commands"
    )


class SmtpSettings(BaseModel):
    """Settings controlling outbound SMTP delivery."""

    host: str = Field(default="smtp.stackmail.com", description="SMTP hostname")
    port: int = Field(default=465, description="SMTP port")
    use_ssl: bool = Field(
        default=True, description="Implicit SSL; STARTTLS is used when disabled"
    )
    verify_tls: bool = Field(
        default=True, description="Verify the server certificate chain"
    )
    timeout_seconds: float = Field(
        default=30, gt=0, description="Socket timeout for SMTP commands"
    )


class SystemSenderSettings(BaseModel):
    """Identity used for transactional messages sent on behalf of the service."""

    username: str | None = Field(default=None, description="System mailbox login")
    password: str | None = Field(default=None, description="System mailbox secret")
    from_name: str = Field(default="Shoora Mail", description="Display name")


class FolderSettings(BaseModel):
    """Canonical server-side folder names."""

    inbox: str = Field(default="INBOX", description="Canonical inbox name")
    sent: str = Field(default="Sent", description="Folder receiving sent copies")
    drafts: str = Field(default="Drafts", description="Folder receiving drafts")


class MessageSettings(BaseModel):
    """Normalization and paging parameters."""

    preview_length: int = Field(default=100, ge=0, description="Preview size")
    inline_attachment_limit: int = Field(
        default=1024 * 1024,
        ge=0,
        description="Attachments smaller than this are inlined as base64",
    )
    download_path: str = Field(
        default="/api/download-attachment",
        description="Path used to build attachment download URLs",
    )
    default_page_size: int = Field(
        default=10, ge=1, description="Page size for the inbox"
    )
    folder_page_size: int = Field(
        default=20, ge=1, description="Page size for other folders"
    )
    upload_root: Path = Field(
        default=Path("."),
        description="Directory used to resolve relative attachment URLs",
    )


class CategorySettings(BaseModel):
    """Versionable table driving the sender-domain categorization heuristic."""

    version: int = Field(default=1, description="Table revision")
    promotional_keywords: tuple[str, ...] = Field(
        default=(
            "newsletter",
            "mailchimp",
            "constantcontact",
            "sendgrid",
            "mailgun",
            "amazon",
            "ebay",
            "facebook",
            "twitter",
            "linkedin",
            "instagram",
            "youtube",
            "netflix",
            "spotify",
            "uber",
            "lyft",
            "airbnb",
            "booking",
            "expedia",
            "tripadvisor",
            "paypal",
            "stripe",
            "shopify",
            "woocommerce",
            "wordpress",
            "blogger",
            "medium",
            "substack",
            "patreon",
            "kickstarter",
            "indiegogo",
            "gofundme",
            "eventbrite",
            "meetup",
            "slack",
            "discord",
            "zoom",
            "teams",
            "webex",
            "gotomeeting",
            "cisco",
            "juniper",
            "aruba",
            "huawei",
            "dell",
            "hp",
            "lenovo",
            "apple",
            "microsoft",
            "google",
        ),
        description="Substrings marking a sender domain as promotional",
    )
    provider_domains: tuple[str, ...] = Field(
        default=(
            "gmail.com",
            "yahoo.com",
            "outlook.com",
            "hotmail.com",
            "aol.com",
            "protonmail.com",
            "icloud.com",
            "me.com",
            "mac.com",
        ),
        description="Well-known mail providers, matched exactly",
    )
    consumer_markers: tuple[str, ...] = Field(
        default=("gmail", "yahoo", "hotmail"),
        description="Substrings that disqualify the business-domain shape rule",
    )
    min_labels: int = Field(default=2, ge=1)
    max_labels: int = Field(default=3, ge=1)
    colors: dict[str, str] = Field(
        default_factory=lambda: {
            "work": "#34A853",
            "personal": "#FFB800",
            "promotions": "#2D62ED",
        },
        description="Presentation hint per category",
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Emit key=value structured log lines"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    imap: ImapSettings = Field(default_factory=ImapSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)
    system_sender: SystemSenderSettings = Field(default_factory=SystemSenderSettings)
    folders: FolderSettings = Field(default_factory=FolderSettings)
    messages: MessageSettings = Field(default_factory=MessageSettings)
    categories: CategorySettings = Field(default_factory=CategorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "MAILSYNC_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        if not isinstance(next_node, dict):
            return
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, include_environment: bool
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        # Single-segment keys (MAILSYNC_USER) belong to the CLI, not the tree.
        if len(path) < 2:
            continue
        normalized_value: Any = value
        if isinstance(value, str) and value == "":
            normalized_value = None
        elif isinstance(value, str):
            lowercase_value = value.lower()
            if lowercase_value == "true":
                normalized_value = True
            elif lowercase_value == "false":
                normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    *,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "CategorySettings",
    "FolderSettings",
    "ImapSettings",
    "LoggingSettings",
    "MessageSettings",
    "SmtpSettings",
    "SystemSenderSettings",
    "load_app_settings",
]
