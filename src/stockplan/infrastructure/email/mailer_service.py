import asyncio
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.text import MIMEText

from stockplan_config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body: str


class MailerService(ABC):
    """Delivers plain-text messages to a single recipient."""

    @abstractmethod
    async def send(self, message: MailMessage) -> None:
        """Send a message. Raises on delivery failure."""


class ConsoleMailerService(MailerService):
    """Development mailer: writes the message to the log instead of sending it."""

    async def send(self, message: MailMessage) -> None:
        logger.info(
            "[mailer] to=%s subject=%s body=%s",
            message.to,
            message.subject,
            message.body,
        )


class SmtpMailerService(MailerService):
    def __init__(self, settings: Settings):
        self._settings = settings

    def _create_message(self, message: MailMessage) -> MIMEText:
        msg = MIMEText(message.body, "plain", "utf-8")
        msg["Subject"] = message.subject
        msg["From"] = f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        msg["To"] = message.to
        return msg

    def _send_blocking(self, message: MailMessage) -> None:
        if not self._settings.smtp_host:
            msg = "SMTP host not configured"
            raise RuntimeError(msg)

        mime = self._create_message(message)
        smtp_password = (
            self._settings.smtp_password.get_secret_value()
            if self._settings.smtp_password
            else ""
        )

        if self._settings.smtp_use_tls and not self._settings.smtp_starttls:
            # Implicit TLS (port 465)
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(
                self._settings.smtp_host,
                self._settings.smtp_port,
                context=context,
                timeout=self._settings.smtp_timeout_seconds,
            ) as server:
                if self._settings.smtp_user:
                    server.login(self._settings.smtp_user, smtp_password)
                server.send_message(mime)
        else:
            # STARTTLS (port 587) or plain
            with smtplib.SMTP(
                self._settings.smtp_host,
                self._settings.smtp_port,
                timeout=self._settings.smtp_timeout_seconds,
            ) as server:
                if self._settings.smtp_starttls:
                    context = ssl.create_default_context()
                    server.starttls(context=context)
                if self._settings.smtp_user:
                    server.login(self._settings.smtp_user, smtp_password)
                server.send_message(mime)

    async def send(self, message: MailMessage) -> None:
        try:
            # smtplib blocks; keep it off the event loop
            await asyncio.to_thread(self._send_blocking, message)
        except Exception as e:
            logger.error("Failed to send email to %s: %s", message.to, e)
            raise
        logger.info("Email sent to %s", message.to)


def create_mailer_service(settings: Settings) -> MailerService:
    if settings.smtp_enabled:
        return SmtpMailerService(settings)
    logger.debug("SMTP disabled, using console mailer")
    return ConsoleMailerService()
