"""Outbound delivery of reset codes and verification links."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlencode

from app.core.config import Settings, settings

if TYPE_CHECKING:
    from app.services.tokens.records import SecurityContext

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send_password_reset_code(self, to: str, code: str, security_context: SecurityContext) -> bool: ...

    def send_email_verification(self, to: str, name: str, verification_url: str) -> bool: ...


class VerificationUrlBuilder:
    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def __call__(self, token: str) -> str:
        separator = "&" if "?" in self.base_url else "?"
        return f"{self.base_url}{separator}{urlencode({'token': token})}"


def build_password_reset_email(
    app_name: str,
    code: str,
    security_context: SecurityContext,
    *,
    expires_minutes: int,
) -> tuple[str, str]:
    subject = f"Password Reset Code - {app_name}"
    requested_at = security_context.request_time.strftime("%Y-%m-%d %H:%M UTC")
    body = (
        "We received a request to reset your password.\n\n"
        f"Your reset code: {code}\n\n"
        f"The code expires in {expires_minutes} minutes and can be used once.\n\n"
        "Request details:\n"
        f"- Time: {requested_at}\n"
        f"- IP address: {security_context.request_ip or 'unknown'}\n"
        f"- Device: {security_context.user_agent or 'unknown'}\n\n"
        "If you did not request this, you can ignore this email. Never share this code."
    )
    return subject, body


def build_verification_email(app_name: str, name: str, verification_url: str, *, expires_hours: int) -> tuple[str, str]:
    subject = f"Verify Your Email - {app_name}"
    greeting = f"Hello {name}," if name else "Hello,"
    body = (
        f"{greeting}\n\n"
        "Please confirm your email address by opening this link:\n\n"
        f"{verification_url}\n\n"
        f"The link expires in {expires_hours} hours.\n\n"
        "If you did not create an account, you can ignore this email."
    )
    return subject, body


class SmtpNotifier:
    """Plain-text notifier over SMTP. Returns ``False`` instead of raising."""

    def __init__(self, config: Settings = settings) -> None:
        self.config = config

    def send_password_reset_code(self, to: str, code: str, security_context: SecurityContext) -> bool:
        subject, body = build_password_reset_email(
            self.config.APP_NAME,
            code,
            security_context,
            expires_minutes=self.config.PASSWORD_RESET_CODE_EXPIRE_MINUTES,
        )
        return self.send_email(to, subject, body)

    def send_email_verification(self, to: str, name: str, verification_url: str) -> bool:
        subject, body = build_verification_email(
            self.config.APP_NAME,
            name,
            verification_url,
            expires_hours=self.config.EMAIL_VERIFICATION_EXPIRE_HOURS,
        )
        return self.send_email(to, subject, body)

    def send_email(self, to: str, subject: str, body: str) -> bool:
        config = self.config
        if not config.SMTP_HOST:
            logger.info("SMTP not configured; skipping send")
            return False
        if not config.SMTP_FROM:
            logger.warning("SMTP_FROM not configured; skipping send")
            return False

        message = EmailMessage()
        message["From"] = config.SMTP_FROM
        message["To"] = to
        message["Subject"] = subject
        message["X-Auto-Response-Suppress"] = "All"
        message.set_content(body)

        try:
            with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=config.SMTP_TIMEOUT_SECONDS) as server:
                server.ehlo()
                if config.SMTP_TLS:
                    server.starttls()
                    server.ehlo()
                if config.SMTP_USER:
                    server.login(config.SMTP_USER, config.SMTP_PASSWORD)
                server.send_message(message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Email send failed: %s", subject)
            return False
        logger.info("Email sent: %s", subject)
        return True
