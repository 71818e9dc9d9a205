"""Email dispatcher for the password reset flow."""

from __future__ import annotations

import asyncio
import logging
from html import escape

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import ClickTracking, Mail, TrackingSettings

from app.config import EMAIL_BASE_URL, EMAIL_SENDER, SENDGRID_API_KEY

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, *, base_url: str = EMAIL_BASE_URL, sender: str = EMAIL_SENDER, api_key=SENDGRID_API_KEY) -> None:
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self.api_key = api_key

    def reset_link(self, token: str) -> str:
        return f"{self.base_url}/change-password/{token}"

    async def send_password_reset(self, recipient: str, token: str) -> bool:
        body = f'<a href="{escape(self.reset_link(token))}">reset password</a>'
        return await self.send(recipient, "Reset your password", body)

    async def send(self, recipient: str, subject: str, html_body: str) -> bool:
        """Deliver ``html_body``; returns ``False`` instead of raising on failure."""
        if not self.api_key:
            logger.warning("SendGrid API key missing; logging message instead.")
            logger.info("Email to %s\nSubject: %s\n%s", recipient, subject, html_body)
            return True
        return await asyncio.to_thread(self._send_via_sendgrid, recipient, subject, html_body)

    def _send_via_sendgrid(self, recipient: str, subject: str, html_body: str) -> bool:
        message = Mail(
            from_email=self.sender,
            to_emails=recipient,
            subject=subject,
            html_content=html_body,
        )
        # tracking rewrites links, which would break the token URL
        message.tracking_settings = TrackingSettings(
            click_tracking=ClickTracking(enable=False, enable_text=False)
        )

        try:
            response = SendGridAPIClient(self.api_key).send(message)
        except Exception as exc:  # pragma: no cover - network
            logger.error("Failed to send email via SendGrid: %s", exc)
            return False

        status = getattr(response, "status_code", None)
        if status and status >= 400:
            detail = getattr(response, "body", b"")
            if isinstance(detail, (bytes, bytearray)):
                detail = detail.decode("utf-8", errors="ignore")
            logger.error("SendGrid API responded with %s: %s", status, detail)
            return False
        return True
