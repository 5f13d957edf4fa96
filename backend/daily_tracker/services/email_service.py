"""
Daily Tracker Backend — Transactional Email (Resend)
======================================================

What:  Delivers one-time passcodes by email through the Resend HTTP API.
Why:   Resend needs only an API key and one HTTPS call; no SMTP setup.
How:   One POST per message with bearer auth and an HTML body, sent through
       a short-lived httpx.AsyncClient. No retries.
Who:   AuthService, for password-reset and mobile-login codes.

Fallback:
    The OTP is already stored before delivery is attempted, so delivery is
    best effort. `send_otp()` never raises:

        no API key configured   → code written to the log, returns False
        HTTP 4xx/5xx            → error logged, code logged, returns False
        timeout / network fault → error logged, code logged, returns False
        2xx                     → returns True

    Codes are never part of an API response.
"""

import logging
from enum import Enum
from typing import Optional

import httpx

from daily_tracker.config import Settings
from daily_tracker.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class OtpPurpose(str, Enum):
    PASSWORD_RESET = "password_reset"
    MOBILE_LOGIN = "mobile_login"


SUBJECTS = {
    OtpPurpose.PASSWORD_RESET: "Password Reset OTP - Daily Tracker",
    OtpPurpose.MOBILE_LOGIN: "Mobile Login OTP - Daily Tracker",
}

HEADINGS = {
    OtpPurpose.PASSWORD_RESET: "Password Reset Request",
    OtpPurpose.MOBILE_LOGIN: "Mobile Login Request",
}

_CODE_STYLE = (
    "background-color: #f4f4f4; padding: 20px; text-align: center; "
    "font-size: 32px; font-weight: bold; letter-spacing: 8px; margin: 20px 0;"
)


def render_otp_html(code: str, purpose: OtpPurpose, ttl_minutes: int, phone: Optional[str] = None) -> str:
    """Build the HTML body for an OTP message."""
    lines = [
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">',
        f'<h2 style="color: #333;">{HEADINGS[purpose]}</h2>',
        "<p>Your OTP code is:</p>",
        f'<div style="{_CODE_STYLE}">{code}</div>',
        f'<p style="color: #666;">This code will expire in {ttl_minutes} minutes.</p>',
    ]
    if phone:
        lines.append(f'<p style="color: #666;">Phone number: {phone}</p>')
    lines.append(
        "<p style=\"color: #666;\">If you didn't request this, please ignore this email.</p>"
    )
    lines.append("</div>")
    return "\n".join(lines)


class EmailService:
    """
    Thin Resend client.

    `transport` exists for tests, which pass an `httpx.MockTransport` to
    exercise the success and failure paths without network access.
    """

    def __init__(
        self,
        api_key: str = "",
        sender: str = "Daily Tracker <onboarding@resend.dev>",
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
        otp_ttl_minutes: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key.strip()
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout
        self.otp_ttl_minutes = otp_ttl_minutes
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailService":
        return cls(
            api_key=settings.resend_api_key,
            sender=settings.email_from,
            api_url=settings.resend_api_url,
            timeout=settings.email_timeout_seconds,
            otp_ttl_minutes=max(1, settings.otp_ttl_seconds // 60),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send(self, to: str, subject: str, html: str) -> None:
        """
        Send one message.

        Raises:
            EmailDeliveryError: provider returned an error status, or the
                request could not be completed.
        """
        payload = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(
                message=f"Email request failed: {exc}",
                context={"error_type": type(exc).__name__},
            ) from exc

        if response.is_error:
            raise EmailDeliveryError(
                message="Email provider rejected the message",
                status_code=response.status_code,
                context={"body": response.text[:500]},
            )

    async def send_otp(
        self,
        to: str,
        code: str,
        purpose: OtpPurpose,
        phone: Optional[str] = None,
    ) -> bool:
        """Deliver an OTP. Returns True only when the provider accepted it."""
        purpose = OtpPurpose(purpose)
        identifier = phone or to

        if not self.enabled or not to:
            logger.warning("No email API key found, OTP for %s: %s", identifier, code)
            return False

        html = render_otp_html(code, purpose, self.otp_ttl_minutes, phone=phone)
        try:
            await self.send(to, SUBJECTS[purpose], html)
        except EmailDeliveryError as exc:
            logger.error("Resend API error: %s (context=%s)", exc.message, exc.context)
            logger.warning("Email failed, OTP for %s: %s", identifier, code)
            return False

        if phone:
            logger.info("OTP email sent to %s for phone %s", to, phone)
        else:
            logger.info("OTP sent to %s", to)
        return True
