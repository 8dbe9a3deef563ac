"""Email request and message models.

``SendEmailRequest`` is the API body. ``build_outgoing_email`` turns it into
an ``OutgoingEmail`` that every provider sends the same way: subject, plain
text, HTML, at most one attachment, and reply-threading headers derived
from ``replyToId``.
"""

import base64
import html as html_lib
import mimetypes
import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from services.shared.config import Settings
from services.shared.errors import ConfigurationError

DEFAULT_SUBJECT = "Invoice from Cascade Builder Services"
DEFAULT_ATTACHMENT_NAME = "invoice.pdf"

_DATA_URI_PREFIX = re.compile(r"^data:[^;,]*;base64,")
_HTML_TAG = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]*>")
_URL = re.compile(r"(https?://[^\s<]+)")


class EmailAttachment(BaseModel):
    """Attachment as sent by the web client (base64, optional data URI prefix)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    filename: str = DEFAULT_ATTACHMENT_NAME
    data: str
    content_type: str | None = None


class SendEmailRequest(BaseModel):
    """Body of ``POST /send-email``.

    Covers both callers: the invoice mailer (subject/text/html/attachment)
    and the messaging screen (body/fromName/replyToId).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    to: str | list[str] | None = None
    subject: str | None = None
    text: str | None = None
    html: str | None = None
    body: str | None = None
    attachment: EmailAttachment | None = None
    from_name: str | None = None
    reply_to_id: str | None = None


class OutgoingAttachment(BaseModel):
    filename: str
    content_type: str
    content_base64: str

    @property
    def content(self) -> bytes:
        return base64.b64decode(self.content_base64)


class OutgoingEmail(BaseModel):
    """Provider-neutral message."""

    to: list[str]
    from_email: str
    from_name: str
    subject: str
    text: str = ""
    html: str = ""
    reply_to_id: str | None = None
    attachment: OutgoingAttachment | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def sender_domain(self) -> str:
        return self.from_email.rsplit("@", 1)[-1]


def contains_html(value: str) -> bool:
    return bool(_HTML_TAG.search(value))


def html_to_text(value: str) -> str:
    """Strip tags for the plain-text alternative."""
    return html_lib.unescape(_ANY_TAG.sub("", value)).replace("\xa0", " ").strip()


def text_to_html(value: str) -> str:
    """Linkify URLs and keep line breaks."""
    escaped = html_lib.escape(value, quote=False)
    linked = _URL.sub(r'<a href="\1">\1</a>', escaped)
    return linked.replace("\n", "<br>")


def thread_headers(reply_to_id: str | None, domain: str) -> dict[str, str]:
    """Headers that let mail clients and the inbound parser thread replies."""
    if not reply_to_id:
        return {}
    message_ref = f"<{reply_to_id}@{domain}>"
    return {
        "X-Thread-ID": reply_to_id,
        "In-Reply-To": message_ref,
        "References": message_ref,
    }


def resolve_from_email(settings: Settings) -> str:
    """Pick the sender address.

    Raises:
        ConfigurationError: If no usable address is configured
    """
    from_email = settings.sendgrid_reply_email or settings.smtp_from or settings.smtp_user
    if not from_email or "@" not in from_email:
        raise ConfigurationError(
            "Invalid 'from' email address configured. "
            "Set SENDGRID_REPLY_EMAIL or SMTP_FROM environment variable."
        )
    return from_email


def _build_attachment(attachment: EmailAttachment) -> OutgoingAttachment:
    content = _DATA_URI_PREFIX.sub("", attachment.data.strip())
    content_type = (
        attachment.content_type
        or mimetypes.guess_type(attachment.filename)[0]
        or "application/octet-stream"
    )
    return OutgoingAttachment(
        filename=attachment.filename or DEFAULT_ATTACHMENT_NAME,
        content_type=content_type,
        content_base64=content,
    )


def build_outgoing_email(request: SendEmailRequest, settings: Settings) -> OutgoingEmail:
    """Build the provider-neutral message from an API request.

    Args:
        request: Validated request body (``to`` already checked)
        settings: Application settings (sender identity)

    Returns:
        OutgoingEmail ready for any provider
    """
    from_email = resolve_from_email(settings)
    recipients = [request.to] if isinstance(request.to, str) else list(request.to or [])

    text = request.text or ""
    html = request.html or ""
    if request.body:
        if contains_html(request.body):
            html = html or request.body
        else:
            text = text or request.body

    if html and not text:
        text = html_to_text(html)
    elif text and not html:
        html = text_to_html(text)

    if request.reply_to_id and html:
        html += (
            '<hr style="margin-top: 20px; border: none; border-top: 1px solid #ddd;">'
            f'<p style="font-size: 12px; color: #666;">Reply-To ID: '
            f"{html_lib.escape(request.reply_to_id)}</p>"
        )

    return OutgoingEmail(
        to=recipients,
        from_email=from_email,
        from_name=request.from_name or settings.smtp_from_name,
        subject=request.subject or DEFAULT_SUBJECT,
        text=text,
        html=html,
        reply_to_id=request.reply_to_id,
        attachment=_build_attachment(request.attachment) if request.attachment else None,
        headers=thread_headers(request.reply_to_id, from_email.rsplit("@", 1)[-1]),
    )
