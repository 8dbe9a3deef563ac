"""SendGrid email provider.

Uses the SendGrid v3 Mail Send API over HTTP:
https://www.twilio.com/docs/sendgrid/api-reference/mail-send/mail-send

One request per message. A rejected request is reported as a failed
EmailResult carrying SendGrid's error messages; it is never retried.
"""

import logging
from typing import Any

import httpx

from services.mailer.base import EmailProvider, EmailResult
from services.mailer.message import OutgoingEmail
from services.shared.config import Settings

logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridEmailProvider(EmailProvider):
    """Transactional email through SendGrid.

    Requires SENDGRID_API_KEY environment variable.
    """

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._client = httpx.Client(timeout=settings.email_timeout_seconds)

    @property
    def provider_name(self) -> str:
        return "sendgrid"

    def is_available(self) -> bool:
        return bool(self.settings.sendgrid_api_key)

    def send(self, message: OutgoingEmail) -> EmailResult:
        """Send message via SendGrid.

        Args:
            message: Provider-neutral message

        Returns:
            EmailResult with SendGrid's X-Message-Id or the API error
        """
        if not self.is_available():
            return EmailResult(
                success=False,
                provider=self.provider_name,
                error="SENDGRID_API_KEY environment variable not set",
            )

        try:
            response = self._client.post(
                SENDGRID_API_URL,
                headers={"Authorization": f"Bearer {self.settings.sendgrid_api_key}"},
                json=self._build_payload(message),
            )
        except httpx.HTTPError as e:
            logger.error(f"SendGrid request failed: {e}")
            return EmailResult(
                success=False,
                provider=self.provider_name,
                error=f"SendGrid request failed: {e}",
            )

        if response.status_code >= 400:
            error = self._extract_error(response)
            logger.error(f"SendGrid rejected message ({response.status_code}): {error}")
            return EmailResult(success=False, provider=self.provider_name, error=error)

        message_id = response.headers.get("x-message-id")
        logger.info(f"Email sent via SendGrid to {', '.join(message.to)} (id={message_id})")
        return EmailResult(success=True, provider=self.provider_name, message_id=message_id)

    def _build_payload(self, message: OutgoingEmail) -> dict[str, Any]:
        personalization: dict[str, Any] = {"to": [{"email": to} for to in message.to]}
        if message.reply_to_id:
            personalization["custom_args"] = {"threadId": message.reply_to_id}

        content = []
        if message.text:
            content.append({"type": "text/plain", "value": message.text})
        if message.html:
            content.append({"type": "text/html", "value": message.html})

        payload: dict[str, Any] = {
            "personalizations": [personalization],
            "from": {"email": message.from_email, "name": message.from_name},
            "reply_to": {"email": message.from_email},
            "subject": message.subject,
            "content": content,
        }
        if message.headers:
            payload["headers"] = message.headers
        if message.attachment:
            payload["attachments"] = [
                {
                    "content": message.attachment.content_base64,
                    "filename": message.attachment.filename,
                    "type": message.attachment.content_type,
                    "disposition": "attachment",
                }
            ]
        return payload

    @staticmethod
    def _extract_error(response: httpx.Response) -> str:
        """Join SendGrid's validation messages, falling back to the status line."""
        try:
            errors = response.json().get("errors") or []
        except ValueError:
            errors = []
        messages = [
            err.get("message") or str(err) if isinstance(err, dict) else str(err)
            for err in errors
        ]
        if messages:
            return "; ".join(messages)
        return f"SendGrid returned HTTP {response.status_code}"
