# pranveda/core/email_client.py
"""
Outgoing mail. The only message the backend sends is the password-reset
link; when SMTP is not configured the reset token is still issued and
delivery is skipped.

Port 465 setups use SMTP_USE_SSL=true, port 587 setups STARTTLS via
SMTP_USE_TLS=true.
"""
import logging
import smtplib
from email.message import EmailMessage

from pranveda.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

RESET_SUBJECT = "[PranVeda] Reset your password"


def is_configured(settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    return bool(settings.SMTP_HOST and settings.SMTP_USERNAME and settings.SMTP_PASSWORD)


def _connect(settings: Settings) -> smtplib.SMTP:
    if settings.SMTP_USE_SSL:
        return smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30)
    server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30)
    if settings.SMTP_USE_TLS:
        server.starttls()
    return server


def build_reset_message(to_email: str, reset_link: str, ttl_minutes: int, settings: Settings) -> EmailMessage:
    sender = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME
    msg = EmailMessage()
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{sender}>"
    msg["To"] = to_email
    msg["Subject"] = RESET_SUBJECT
    msg.set_content(
        "We received a request to reset your PranVeda password.\n\n"
        f"Open this link to choose a new password (valid for {ttl_minutes} minutes):\n"
        f"{reset_link}\n\n"
        "If you did not ask for this, you can ignore this email."
    )
    msg.add_alternative(
        "<p>We received a request to reset your PranVeda password.</p>"
        f'<p><a href="{reset_link}">Choose a new password</a> '
        f"(valid for {ttl_minutes} minutes).</p>"
        "<p>If you did not ask for this, you can ignore this email.</p>",
        subtype="html",
    )
    return msg


def send_password_reset_email(to_email: str, reset_link: str, ttl_minutes: int) -> bool:
    """
    Hand a reset link to the SMTP server.

    Returns False when SMTP is not configured or delivery failed; failures
    are logged and never reach the caller, so the forgot-password response
    stays identical for known and unknown addresses.
    """
    settings = get_settings()
    if not is_configured(settings):
        logger.info("SMTP not configured; skipping password reset email")
        return False

    msg = build_reset_message(to_email, reset_link, ttl_minutes, settings)
    try:
        server = _connect(settings)
        try:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
        finally:
            server.quit()
    except (OSError, smtplib.SMTPException):
        logger.exception("Failed to send password reset email")
        return False
    return True
