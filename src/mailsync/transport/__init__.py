"""Transport adapters for the remote mail store and outbound relay."""

from .imap_client import ImapSession, ImapSessionFactory
from .smtp_client import SmtpClient

__all__ = ["ImapSession", "ImapSessionFactory", "SmtpClient"]
