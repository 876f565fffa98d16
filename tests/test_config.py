"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from mailsync.core.config import load_app_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.imap.host == "imap.cybershoora.com"
    assert settings.imap.port == 993
    assert settings.smtp.host == "smtp.stackmail.com"
    assert settings.folders.inbox == "INBOX"
    assert settings.messages.preview_length == 100
    assert settings.messages.inline_attachment_limit == 1024 * 1024
    assert settings.system_sender.username is None


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "MAILSYNC_IMAP__HOST=imap.example.com\n"
        "MAILSYNC_IMAP__VERIFY_TLS=false\n"
        "MAILSYNC_MESSAGES__DEFAULT_PAGE_SIZE=25\n"
        "MAILSYNC_USER=ignored@example.com\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.imap.host == "imap.example.com"
    assert settings.imap.verify_tls is False
    assert settings.messages.default_page_size == 25


def test_process_environment_wins_over_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("MAILSYNC_SMTP__PORT=2525\n", encoding="utf-8")
    monkeypatch.setenv("MAILSYNC_SMTP__PORT", "587")
    monkeypatch.setenv("MAILSYNC_SYSTEM_SENDER__USERNAME", "noreply@example.com")

    settings = load_app_settings(env_file=env_file)
    assert settings.smtp.port == 587
    assert settings.system_sender.username == "noreply@example.com"


def test_environment_ignored_when_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAILSYNC_IMAP__HOST", "imap.other.test")

    settings = load_app_settings(include_environment=False)
    assert settings.imap.host == "imap.cybershoora.com"
