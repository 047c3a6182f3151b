import logging
import smtplib
from email.message import EmailMessage

from .config import Settings

logger = logging.getLogger(__name__)

EMAIL_OUTBOX: list[tuple[str, str, str]] = []


def send_email(settings: Settings, to_email: str, subject: str, message: str) -> bool:
    """Deliver a message without ever raising; returns whether it was handed off."""

    if settings.testing:
        EMAIL_OUTBOX.append((to_email, subject, message))
        return True
    if not settings.smtp_server:
        logger.info("SMTP not configured, dropping email to %s: %s", to_email, subject)
        return False
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.email_from
    msg["To"] = to_email
    msg.set_content(message)
    try:
        with smtplib.SMTP(settings.smtp_server) as s:
            s.send_message(msg)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send email to %s", to_email)
        return False
    return True
