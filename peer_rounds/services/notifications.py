"""Notification port for round lifecycle emails.

Sends are fire-and-forget: callers go through ``notify_safely`` so a mail
failure is logged and never affects the round operation that triggered it.
"""
import logging
import smtplib
from email.message import EmailMessage
from typing import Callable, Optional, Protocol

from peer_rounds.config import Settings, get_settings

logger = logging.getLogger(__name__)


class NotificationPort(Protocol):
    """Outbound notifications sent by the round engine."""

    def send_round_started(self, email: str, name: str, org_name: str) -> None: ...

    def send_assessment_reminder(self, email: str, name: str, org_name: str) -> None: ...


class LoggingNotifier:
    """Notifier that only logs; used when email delivery is disabled."""

    def send_round_started(self, email: str, name: str, org_name: str) -> None:
        logger.info(f"Round started notification for {name} <{email}> ({org_name})")

    def send_assessment_reminder(self, email: str, name: str, org_name: str) -> None:
        logger.info(f"Assessment reminder for {name} <{email}> ({org_name})")


class SmtpNotifier:
    """Plain-text email notifier over SMTP."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=self.settings.smtp_timeout) as smtp:
            if self.settings.smtp_use_tls:
                smtp.starttls()
            if self.settings.smtp_user:
                smtp.login(self.settings.smtp_user, self.settings.smtp_password)
            smtp.send_message(message)

    def send_round_started(self, email: str, name: str, org_name: str) -> None:
        self._send(
            email,
            f"{org_name}: a new assessment round has started",
            (
                f"Hi {name},\n\n"
                f"A new assessment round has started for {org_name}. "
                "Please assess your teammates before the round closes.\n"
            ),
        )

    def send_assessment_reminder(self, email: str, name: str, org_name: str) -> None:
        self._send(
            email,
            f"{org_name}: reminder to assess your teammates",
            (
                f"Hi {name},\n\n"
                f"You still have teammates to assess in the current {org_name} round. "
                "Please submit your assessments before the round closes.\n"
            ),
        )


def notify_safely(send: Callable[..., None], email: Optional[str], name: str, org_name: str) -> bool:
    """Run one send; log and swallow any failure. Returns whether it was sent."""
    if not email:
        logger.debug(f"Skipping notification for {name}: no email address")
        return False
    try:
        send(email, name, org_name)
        return True
    except Exception as e:
        logger.warning(f"Notification to {email} failed: {e}")
        return False


def get_notifier() -> NotificationPort:
    """Notifier chosen from settings."""
    settings = get_settings()
    if settings.email_enabled:
        return SmtpNotifier(settings)
    return LoggingNotifier()
