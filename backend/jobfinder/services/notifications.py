"""
Notification Service - Transactional Email and SMS via the Brevo REST API

Endpoints:
    POST /v3/smtp/email              - transactional email
    POST /v3/transactionalSMS/sms    - transactional SMS

Every send returns a NotificationResult; transport and API errors are
reported in the result instead of being raised to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from jobfinder.config import get_settings

logger = logging.getLogger(__name__)

BREVO_BASE_URL = "https://api.brevo.com/v3"


@dataclass
class NotificationResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"success": self.success, "message_id": self.message_id, "error": self.error}


class NotificationService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        sender_email: Optional[str] = None,
        sender_name: Optional[str] = None,
        base_url: str = BREVO_BASE_URL,
        timeout: float = 30.0,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.brevo_api_key
        self.sender_email = sender_email or settings.brevo_sender_email
        self.sender_name = sender_name or settings.brevo_sender_name
        self.base_url = base_url
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _post(self, path: str, payload: dict) -> NotificationResult:
        if not self.configured:
            return NotificationResult(success=False, error="Brevo not configured")

        headers = {
            "api-key": self.api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.post(path, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            logger.error(f"Brevo {path} rejected request: {e.response.status_code} {e.response.text}")
            return NotificationResult(success=False, error=f"Brevo API error {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Brevo {path} request failed: {e}")
            return NotificationResult(success=False, error=str(e))

        message_id = data.get("messageId") or data.get("reference")
        return NotificationResult(success=True, message_id=str(message_id) if message_id else None)

    async def send_email(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> NotificationResult:
        payload = {
            "sender": {"email": self.sender_email, "name": self.sender_name},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html_content,
        }
        if text_content:
            payload["textContent"] = text_content

        result = await self._post("/smtp/email", payload)
        if result.success:
            logger.info(f"Email sent to {to} ({result.message_id})")
        return result

    async def send_sms(self, to: str, message: str) -> NotificationResult:
        payload = {
            "sender": self.sender_name[:11],
            "recipient": to,
            "content": message,
            "type": "transactional",
        }
        result = await self._post("/transactionalSMS/sms", payload)
        if result.success:
            logger.info(f"SMS sent to {to} ({result.message_id})")
        return result

    async def send_test_notification(self, channel: str, recipient: str) -> NotificationResult:
        if channel == "email":
            return await self.send_email(
                recipient,
                "Job Finder - Test Notification",
                "<h1>Test Notification</h1><p>Your email notifications are working.</p>",
                "Test Notification\n\nYour email notifications are working.",
            )
        if channel == "sms":
            return await self.send_sms(recipient, "Job Finder: your SMS notifications are working.")
        return NotificationResult(success=False, error=f"Unsupported notification type: {channel}")
