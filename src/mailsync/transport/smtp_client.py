"""SMTP client for sending emails with proper error handling and security."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from ..core.config import SmtpSettings
from ..core.exceptions import AuthenticationError, DeliveryError, MailConnectionError
from ..core.interfaces import OutboundTransport
from ..core.models import Credentials

LOGGER = logging.getLogger(__name__)


class SmtpClient(OutboundTransport):
    """SMTP client for sending emails as one authenticated identity.

    Provides context manager interface for automatic connection management.
    Supports both implicit SSL and STARTTLS connections.

    Example:
        >>> settings = SmtpSettings(host="smtp.example.com")
        >>> with SmtpClient(settings, Credentials("me@example.com", "pw")) as client:
        ...     client.send(mime_message)
    """

    def __init__(self, settings: SmtpSettings, credentials: Credentials) -> None:
        """Initialize SMTP client with configuration and login identity.

        Args:
            settings: SMTP configuration settings
            credentials: Identity the message is sent as
        """
        self._settings = settings
        self._credentials = credentials
        self._connection: smtplib.SMTP | None = None

    def __enter__(self) -> SmtpClient:
        """Enter context manager, establishing connection."""
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        """Exit context manager, closing connection."""
        self.close()

    def connect(self) -> None:
        """Establish SMTP connection and authenticate.

        Raises:
            AuthenticationError: If the server rejects the credentials
            MailConnectionError: If the server cannot be reached
        """
        settings = self._settings
        LOGGER.info("Attempting SMTP connection to %s:%d", settings.host, settings.port)
        context = ssl.create_default_context()
        if not settings.verify_tls:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        try:
            if settings.use_ssl:
                LOGGER.debug("Using SSL for SMTP connection")
                self._connection = smtplib.SMTP_SSL(
                    settings.host,
                    settings.port,
                    timeout=settings.timeout_seconds,
                    context=context,
                )
            else:
                LOGGER.debug("Using STARTTLS for SMTP connection")
                self._connection = smtplib.SMTP(
                    settings.host,
                    settings.port,
                    timeout=settings.timeout_seconds,
                )
                self._connection.starttls(context=context)

            LOGGER.debug("Authenticating as %s", self._credentials.identity)
            self._connection.login(self._credentials.identity, self._credentials.secret)
            LOGGER.info("Connected to SMTP server: %s", settings.host)

        except smtplib.SMTPAuthenticationError as exc:
            LOGGER.error("SMTP authentication failed: %s", exc)
            self.close()
            raise AuthenticationError(
                f"SMTP login rejected for {self._credentials.identity}"
            ) from exc
        except smtplib.SMTPException as exc:
            LOGGER.error("SMTP error: %s", exc)
            self.close()
            raise MailConnectionError(f"SMTP error: {exc}") from exc
        except OSError as exc:
            LOGGER.error("Network error connecting to SMTP server: %s", exc)
            self.close()
            raise MailConnectionError(f"Network error: {exc}") from exc

    def close(self) -> None:
        """Close SMTP connection gracefully."""
        if self._connection:
            try:
                self._connection.quit()
                LOGGER.debug("SMTP connection closed")
            except (smtplib.SMTPException, OSError) as exc:
                LOGGER.warning("Error closing SMTP connection: %s", exc)
            finally:
                self._connection = None

    def send(self, message: EmailMessage) -> None:
        """Send a composed email message.

        Raises:
            DeliveryError: If sending fails or not connected
        """
        if not self._connection:
            raise DeliveryError("Not connected to SMTP server")

        LOGGER.info("Sending email to %s: %s", message["To"], message["Subject"])
        try:
            refused = self._connection.send_message(message)
        except smtplib.SMTPRecipientsRefused as exc:
            LOGGER.error("All recipients refused: %s", exc)
            raise DeliveryError(f"All recipients refused: {exc}") from exc
        except smtplib.SMTPSenderRefused as exc:
            LOGGER.error("Sender refused: %s", exc)
            raise DeliveryError(f"Sender refused: {exc}") from exc
        except smtplib.SMTPDataError as exc:
            LOGGER.error("SMTP data error: %s", exc)
            raise DeliveryError(f"SMTP data error: {exc}") from exc
        except (smtplib.SMTPException, OSError) as exc:
            LOGGER.error("Failed to send email: %s", exc)
            raise DeliveryError(f"Failed to send email: {exc}") from exc

        if refused:
            LOGGER.warning("Some recipients were refused: %s", refused)
            raise DeliveryError(f"Some recipients were refused: {refused}")
        LOGGER.info("Email sent successfully to %s", message["To"])


__all__ = ["SmtpClient"]
