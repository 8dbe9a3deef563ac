"""Outbound email route."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from services.api import metrics
from services.api.dependencies import get_app_settings, get_email_provider
from services.mailer.base import EmailProvider
from services.mailer.message import SendEmailRequest, build_outgoing_email
from services.shared.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Email"])


@router.post("/send-email")
def send_email(
    request: SendEmailRequest,
    provider: EmailProvider = Depends(get_email_provider),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Send an invoice or a message through the configured provider.

    The first configured provider (SendGrid, then SMTP) is used for a single
    attempt. A failed send is reported as is; no other provider is tried.
    """
    if not request.to:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing recipient (to)")
    if not (request.text or request.html or request.body or request.attachment):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing email content (text, html or body)",
        )

    message = build_outgoing_email(request, settings)

    logger.info(f"Sending email to {', '.join(message.to)} via {provider.provider_name}")
    result = provider.send(message)

    if not result.success:
        metrics.emails_sent_total.labels(provider=result.provider, status="failed").inc()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error or "Failed to send email",
        )

    metrics.emails_sent_total.labels(provider=result.provider, status="success").inc()
    return {
        "success": True,
        "messageId": result.message_id,
        "provider": result.provider,
        "message": "Email sent successfully",
    }
