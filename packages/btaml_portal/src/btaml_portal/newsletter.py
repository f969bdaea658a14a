"""
Newsletter sign-up: a welcome mail to the subscriber and a notice to the
site owner, sent through the configured SMTP account.
"""

import logging
import re
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import Protocol

from jinja2 import Environment
from starlette.concurrency import run_in_threadpool

from .settings import PortalSettings

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

WELCOME_SUBJECT = "Welcome to BTAML UNIVERSE Newsletter!"
NOTIFICATION_SUBJECT = "New Newsletter Subscription"


class NewsletterError(Exception):
    """A sign-up that could not be processed; carries the HTTP status to report."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class Mailer(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class SMTPMailer:
    """Sends mail over implicit TLS with an account login, off the event loop."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        *,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def send(self, message: EmailMessage) -> None:
        await run_in_threadpool(self._send, message)

    @classmethod
    def from_settings(cls, settings: PortalSettings) -> "SMTPMailer":
        return cls(
            settings.SMTP_HOST,
            settings.SMTP_PORT,
            settings.GMAIL_USER,
            settings.GMAIL_APP_PASSWORD,
        )


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def _html_message(
    *, sender: str, recipient: str, subject: str, html: str
) -> EmailMessage:
    message = EmailMessage()
    message["From"] = formataddr(("BTAML UNIVERSE", sender))
    message["To"] = recipient
    message["Subject"] = subject
    message.set_content("This message is best viewed in an HTML capable client.")
    message.add_alternative(html, subtype="html")
    return message


def build_messages(
    email: str, settings: PortalSettings, env: Environment
) -> tuple[EmailMessage, EmailMessage]:
    """The subscriber's welcome mail and the site owner's notification."""
    sender = settings.GMAIL_USER
    welcome = env.get_template("emails/newsletter_welcome.html").render(
        contact_email=sender,
        site_name=settings.SITE_NAME,
    )
    notice = env.get_template("emails/newsletter_notification.html").render(
        email=email,
        subscribed_at=datetime.now(timezone.utc),
    )
    return (
        _html_message(
            sender=sender, recipient=email, subject=WELCOME_SUBJECT, html=welcome
        ),
        _html_message(
            sender=sender,
            recipient=settings.newsletter_recipient,
            subject=NOTIFICATION_SUBJECT,
            html=notice,
        ),
    )


async def subscribe(
    email: str | None,
    *,
    settings: PortalSettings,
    mailer: Mailer,
    env: Environment,
) -> str:
    """
    Sign `email` up and return the confirmation message.

    Raises:
        NewsletterError: Missing or malformed address (400), missing mail
            credentials or a failed send (500).
    """
    email = (email or "").strip()
    if not email:
        raise NewsletterError("Email is required", 400)
    if not is_valid_email(email):
        raise NewsletterError("Invalid email format", 400)
    if not settings.GMAIL_USER or not settings.GMAIL_APP_PASSWORD:
        logger.error("Missing Gmail credentials in settings")
        raise NewsletterError("Server configuration error", 500)

    try:
        for message in build_messages(email, settings, env):
            await mailer.send(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.exception("Newsletter subscription failed for %s", email)
        raise NewsletterError("Failed to process subscription", 500) from e

    logger.info("New newsletter subscriber %s", email)
    return "Successfully subscribed to newsletter"
