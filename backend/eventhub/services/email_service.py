"""
EventHub Backend — Transactional Email Service
================================================

What:  Sends the verification and password-reset emails.
Why:   Registration and forgot-password flows need to put a one-time link
       in the user's inbox.
How:   Builds a multipart (plain text + HTML) EmailMessage and delivers it
       with aiosmtplib, so SMTP I/O never blocks the event loop.
Who:   AuthService schedules these as FastAPI background tasks; the HTTP
       response does not wait for the SMTP round trip.

Unconfigured SMTP:
    Outside production, a missing SMTP_HOST/SMTP_USER/SMTP_PASS is normal
    (local dev, tests). The message is then logged instead of sent, link
    included, so the flow can still be exercised by hand. In production the
    same situation raises EmailDeliveryError.

Port handling:
    465 → implicit TLS (use_tls=True)
    anything else → plain connect, STARTTLS when the server offers it
"""

import logging
from email.message import EmailMessage
from html import escape
from typing import Optional

import aiosmtplib

from eventhub.config import settings
from eventhub.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

_BUTTON_STYLE = (
    "background-color: #ea580c; color: white; padding: 12px 30px; "
    "text-decoration: none; border-radius: 5px; display: inline-block;"
)


def _html_body(heading: str, greeting: str, intro: str, url: str, button: str, footer: str) -> str:
    return f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #ea580c;">{heading}</h2>
        <p>{greeting}</p>
        <p>{intro}</p>
        <div style="text-align: center; margin: 30px 0;">
          <a href="{url}" style="{_BUTTON_STYLE}">{button}</a>
        </div>
        <p>Or copy and paste this link in your browser:</p>
        <p style="color: #666; word-break: break-all;">{url}</p>
        <p style="color: #666; font-size: 12px; margin-top: 30px;">{footer}</p>
      </div>
    """


class EmailService:
    """
    Thin async SMTP client.

    Stateless apart from settings; a single module-level instance is shared.
    """

    @property
    def is_configured(self) -> bool:
        return bool(settings.smtp_host and settings.smtp_user and settings.smtp_pass)

    def build_message(self, to: str, subject: str, text: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = settings.email_sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    async def send(self, to: str, subject: str, text: str, html: str) -> bool:
        """
        Deliver one message.

        Returns:
            True if handed to the SMTP server, False if SMTP is not configured
            (development only; the message is logged instead).

        Raises:
            EmailDeliveryError: SMTP failure, or SMTP missing in production.
        """
        if not self.is_configured:
            if settings.is_production:
                raise EmailDeliveryError(
                    message=(
                        "SMTP credentials are missing. Set SMTP_HOST, SMTP_PORT, "
                        "SMTP_USER, SMTP_PASS, and optionally EMAIL_FROM."
                    ),
                )
            logger.info("SMTP not configured; email to %s not sent. Subject: %s\n%s", to, subject, text)
            return False

        message = self.build_message(to, subject, text, html)
        try:
            await aiosmtplib.send(
                message,
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_user,
                password=settings.smtp_pass,
                use_tls=settings.smtp_port == 465,
                timeout=30,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send '%s' to %s: %s", subject, to, str(e))
            raise EmailDeliveryError(context={"error_type": type(e).__name__})

        logger.info("Email '%s' sent to %s", subject, to)
        return True

    async def send_verification_email(self, to: str, full_name: str, token: str) -> bool:
        url = f"{settings.frontend_url.rstrip('/')}/verify-email/{token}"
        footer = "This link will expire in 24 hours. If you didn't create an account, please ignore this email."
        text = (
            f"Hi {full_name},\n\n"
            f"Thank you for signing up. Verify your email address by opening this link:\n{url}\n\n"
            f"{footer}\n"
        )
        html = _html_body(
            heading="Welcome to Events Hub!",
            greeting=f"Hi {escape(full_name)},",
            intro="Thank you for signing up. Please verify your email address by clicking the button below:",
            url=url,
            button="Verify Email",
            footer=footer,
        )
        return await self.send(to, "Verify Your Email - Events Hub", text, html)

    async def send_password_reset_email(self, to: str, full_name: str, token: str) -> bool:
        url = f"{settings.frontend_url.rstrip('/')}/reset-password/{token}"
        footer = "This link will expire in 1 hour. If you didn't request a password reset, please ignore this email."
        text = (
            f"Hi {full_name},\n\n"
            f"We received a request to reset your password. Open this link to choose a new one:\n{url}\n\n"
            f"{footer}\n"
        )
        html = _html_body(
            heading="Password Reset Request",
            greeting=f"Hi {escape(full_name)},",
            intro="We received a request to reset your password. Click the button below to create a new password:",
            url=url,
            button="Reset Password",
            footer=footer,
        )
        return await self.send(to, "Reset Your Password - Events Hub", text, html)

    async def deliver_in_background(self, kind: str, to: str, full_name: str, token: str) -> Optional[bool]:
        """
        Background-task entry point.

        The HTTP response has already been sent when this runs, so a delivery
        failure can only be logged. The user can ask for a new link.
        """
        sender = {
            "verification": self.send_verification_email,
            "password_reset": self.send_password_reset_email,
        }[kind]
        try:
            return await sender(to, full_name, token)
        except EmailDeliveryError as e:
            logger.error("Background %s email to %s failed: %s", kind, to, e.message)
            return None


# ── Singleton Instance ────────────────────────────────────────────────────
email_service = EmailService()
