"""Command-line entry point for mailsync."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from mailsync.boundary import canonical_folder
from mailsync.core import AppSettings, MailError, configure_logging, load_app_settings
from mailsync.core.models import Credentials, OutboundMessage
from mailsync.service import MailService


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="mailsync mailbox client")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "--user",
        default=None,
        help="Mailbox login (default: $MAILSYNC_USER).",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Mailbox password (default: $MAILSYNC_PASSWORD).",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "fetch", "download", "send", "draft"],
        help="Operation to execute.",
    )
    parser.add_argument("--folder", default="inbox", help="Folder name (default: inbox).")
    parser.add_argument(
        "--page", type=_positive_int, default=1, help="Page number, 1-based."
    )
    parser.add_argument(
        "--limit",
        type=_positive_int,
        default=None,
        help="Page size (default: 10 for the inbox, 20 otherwise).",
    )
    parser.add_argument("--uid", type=int, default=None, help="Message UID.")
    parser.add_argument(
        "--index", type=int, default=0, help="Attachment position (default: 0)."
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write a downloaded attachment (default: its filename).",
    )
    parser.add_argument("--to", default=None, help="Recipient address.")
    parser.add_argument("--subject", default=None, help="Message subject.")
    parser.add_argument("--body", default=None, help="Plain-text message body.")
    parser.add_argument(
        "--mode",
        choices=["send", "reply", "forward"],
        default="send",
        help="Delivery mode for the send command (default: send).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit status."""
    command = args.command
    if command == "info":
        print("mailsync is ready. Pass --user/--password to access a mailbox.")
        print(f"IMAP host: {settings.imap.host}:{settings.imap.port}")
        print(f"SMTP host: {settings.smtp.host}:{settings.smtp.port}")
        return 0

    credentials = _credentials(args)
    if credentials is None:
        print("Mailbox credentials are required (--user/--password).")
        return 2

    service = MailService(settings)
    folder = canonical_folder(args.folder, settings.folders)
    try:
        if command == "fetch":
            _run_fetch(service, credentials, folder, args.page, args.limit)
        elif command == "download":
            if args.uid is None:
                print("--uid is required for download.")
                return 2
            _run_download(service, credentials, folder, args.uid, args.index, args.output)
        elif command == "send":
            message = _outbound(args, credentials)
            sent = service.deliver(credentials, message, args.mode)
            print(f"Sent '{sent.subject or ''}' to {sent.to}.")
        elif command == "draft":
            saved = service.append_draft_or_sent(
                credentials, settings.folders.drafts, _outbound(args, credentials)
            )
            print("Draft saved." if saved else "Draft has no content; nothing saved.")
    except MailError as exc:
        print(f"{command.capitalize()} failed: {exc}")
        return 1
    return 0


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    sys.exit(execute(args, settings))


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _credentials(args: argparse.Namespace) -> Credentials | None:
    user = args.user or os.environ.get("MAILSYNC_USER")
    password = args.password or os.environ.get("MAILSYNC_PASSWORD")
    if not user or not password:
        return None
    return Credentials(user, password)


def _outbound(args: argparse.Namespace, credentials: Credentials) -> OutboundMessage:
    return OutboundMessage(
        from_address=credentials.identity,
        to=args.to,
        subject=args.subject,
        text=args.body,
    )


def _run_fetch(
    service: MailService,
    credentials: Credentials,
    folder: str,
    page: int,
    limit: int | None,
) -> None:
    """Print a one-line summary per message of the requested page."""
    result = service.fetch_page(credentials, folder, page, limit)
    pagination = result.pagination
    print(
        f"{result.folder} page {pagination.page} "
        f"({len(result.mails)} of {pagination.total} message(s))"
    )
    if not result.mails:
        print("No messages found.")
        return

    header = f"{'UID':>6}  {'':<2}  {'Date':<16}  {'From':<24}  Subject"
    print(header)
    print("-" * len(header))
    for mail in result.mails:
        marker = ("*" if mail.unread else " ") + ("!" if mail.flagged else " ")
        date_text = mail.date.strftime("%Y-%m-%d %H:%M") if mail.date else "-"
        print(
            f"{mail.id:>6}  {marker:<2}  {date_text:<16}  {mail.sender[:24]:<24}  "
            f"{mail.subject or '(no subject)'}"
        )
    if result.skipped:
        print(f"Skipped unreadable UID(s): {', '.join(map(str, result.skipped))}")


def _run_download(
    service: MailService,
    credentials: Credentials,
    folder: str,
    uid: int,
    index: int,
    output: Path | None,
) -> None:
    content = service.download_attachment(credentials, uid, folder, index)
    target = output or Path(Path(content.filename).name)
    target.write_bytes(content.content)
    print(f"Wrote {content.size} byte(s) ({content.content_type}) to {target}")


if __name__ == "__main__":
    main()
