"""
Outbound email transports.

A notifier exposes a single blocking ``send(to, subject, body_html)`` call
and raises ``DeliveryError`` when the message cannot be handed over.  The
mail outbox runs notifiers in a worker thread, so implementations are free
to block on network I/O.
"""
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from actunews.config import Settings
from actunews.errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body_html: str


class Notifier(Protocol):
    def send(self, to: str, subject: str, body_html: str) -> None: ...


class SmtpNotifier:
    """Deliver HTML mail through an SMTP relay (Mailpit locally, a real MTA in production)."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        starttls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def build_message(self, to: str, subject: str, body_html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        # Plain-text part first so clients without HTML support still get something.
        msg.set_content("This message requires an HTML-capable mail client.")
        msg.add_alternative(body_html, subtype="html")
        return msg

    def send(self, to: str, subject: str, body_html: str) -> None:
        msg = self.build_message(to, subject, body_html)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.starttls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery to {to} failed: {exc}") from exc
        logger.info("Mail sent via smtp://%s:%d to %s", self.host, self.port, to)


class ConsoleNotifier:
    """Development notifier: writes the message to the log instead of sending it."""

    def __init__(self, sender: str) -> None:
        self.sender = sender

    def send(self, to: str, subject: str, body_html: str) -> None:
        logger.info(
            "EMAIL (not sent) from=%s to=%s subject=%r body=%s",
            self.sender, to, subject, body_html,
        )


def build_notifier(settings: Settings) -> Notifier:
    """Return the notifier selected by ``settings.MAIL_BACKEND``."""
    if settings.MAIL_BACKEND == "smtp":
        return SmtpNotifier(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.MAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            starttls=settings.SMTP_STARTTLS,
            timeout=settings.SMTP_TIMEOUT,
        )
    if settings.MAIL_BACKEND == "console":
        return ConsoleNotifier(sender=settings.MAIL_FROM)
    raise ValueError(f"Unknown MAIL_BACKEND {settings.MAIL_BACKEND!r}")
