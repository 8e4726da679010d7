"""Transactional email through the Brevo REST API.

Only the outbox dispatcher sends mail. Delivery problems are reported in the
returned result dict, never raised.
"""

import logging
import uuid
from html import escape
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"
ACCEPTED_STATUSES = (200, 201, 202)


def _result(success: bool, status_code: Optional[int] = None, message_id: Optional[str] = None,
            error: Optional[str] = None) -> Dict[str, Any]:
    result = {"success": success, "status_code": status_code, "message_id": message_id}
    if error is not None:
        result["error"] = error
    return result


def _as_html(body: str) -> str:
    return "<html><body><p>" + "<br>".join(escape(line) for line in body.split("\n")) + "</p></body></html>"


class EmailService:
    """Brevo sender bound to the configured from-address."""

    provider = "brevo"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 30.0):
        self.api_key = settings.BREVO_API_KEY if api_key is None else api_key
        self.from_address = settings.EMAIL_FROM_ADDRESS
        self.from_name = settings.EMAIL_FROM_NAME
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_address)

    def get_status(self) -> Dict[str, Any]:
        status = {"configured": self.is_configured, "provider": self.provider}
        if self.is_configured:
            status.update(from_address=self.from_address, from_name=self.from_name)
        else:
            status["message"] = "Set BREVO_API_KEY to enable email delivery"
        return status

    def build_payload(self, to: str, subject: str, body: str,
                      to_name: Optional[str] = None, reply_to: Optional[str] = None) -> Dict[str, Any]:
        recipient = {"email": to, "name": to_name} if to_name else {"email": to}
        payload = {
            "sender": {"name": self.from_name, "email": self.from_address},
            "to": [recipient],
            "subject": subject,
            "textContent": body,
            "htmlContent": _as_html(body),
        }
        if reply_to:
            payload["replyTo"] = {"email": reply_to}
        return payload

    async def send_email(self, to: str, subject: str, body: str,
                         to_name: Optional[str] = None, reply_to: Optional[str] = None) -> Dict[str, Any]:
        """Send one plain-text message; the result carries success, status_code and message_id."""
        if not self.api_key:
            logger.error("Brevo API key not configured")
            return _result(False, error="Brevo API key not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    BREVO_API_URL,
                    json=self.build_payload(to, subject, body, to_name, reply_to),
                    headers={"accept": "application/json", "api-key": self.api_key},
                )
        except httpx.TimeoutException:
            logger.error("Brevo request timed out", extra={"to": to})
            return _result(False, error="Brevo API request timed out")
        except httpx.HTTPError as e:
            logger.error("Brevo request failed", extra={"to": to, "error": str(e)})
            return _result(False, error=str(e))

        if response.status_code not in ACCEPTED_STATUSES:
            logger.error("Brevo API error", extra={"status_code": response.status_code, "error": response.text})
            return _result(False, response.status_code, error=f"Brevo API error: {response.text}")

        message_id = response.json().get("messageId")
        logger.info(
            "Email accepted by Brevo",
            extra={"to": to, "subject": subject[:50], "message_id": message_id},
        )
        return _result(True, response.status_code, message_id)


class MockEmailService(EmailService):
    """Keeps messages in memory; ``fail=True`` simulates a provider outage."""

    provider = "mock"

    def __init__(self, fail: bool = False):
        super().__init__(api_key="mock-key", timeout=0)
        self.from_address = "test@example.com"
        self.from_name = "Test Sender"
        self.fail = fail
        self._sent_emails: List[Dict[str, Any]] = []

    async def send_email(self, to: str, subject: str, body: str,
                         to_name: Optional[str] = None, reply_to: Optional[str] = None) -> Dict[str, Any]:
        if self.fail:
            return _result(False, 503, error="Mock delivery failure")

        message_id = f"mock-{uuid.uuid4().hex[:16]}"
        self._sent_emails.append(
            {"to": to, "to_name": to_name, "subject": subject, "body": body,
             "reply_to": reply_to, "message_id": message_id}
        )
        logger.info(f"Mock email to {to}: {subject}")
        return _result(True, 201, message_id)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Process-wide sender; falls back to the mock when Brevo is not configured."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
        if not _email_service.is_configured:
            logger.warning("Brevo not configured, emails will only be logged")
            _email_service = MockEmailService()
    return _email_service


def set_email_service(service: Optional[EmailService]) -> None:
    global _email_service
    _email_service = service
