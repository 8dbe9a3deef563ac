"""SMTP email provider.

Direct submission with ``smtplib``: implicit TLS when SMTP_SECURE is set,
otherwise STARTTLS whenever the server offers it.
"""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from services.mailer.base import EmailProvider, EmailResult
from services.mailer.message import OutgoingEmail

logger = logging.getLogger(__name__)


class SmtpEmailProvider(EmailProvider):
    """Email through an SMTP relay.

    Requires SMTP_HOST, SMTP_USER and SMTP_PASS environment variables.
    """

    @property
    def provider_name(self) -> str:
        return "smtp"

    def is_available(self) -> bool:
        s = self.settings
        return bool(s.smtp_host and s.smtp_user and s.smtp_pass)

    def build_message(self, message: OutgoingEmail) -> EmailMessage:
        """Render the MIME message.

        Args:
            message: Provider-neutral message

        Returns:
            EmailMessage with text/HTML alternatives and the attachment
        """
        mime = EmailMessage()
        mime["From"] = formataddr((message.from_name, message.from_email))
        mime["To"] = ", ".join(message.to)
        mime["Subject"] = message.subject
        mime["Reply-To"] = message.from_email
        mime["Message-ID"] = make_msgid(domain=message.sender_domain)
        for name, value in message.headers.items():
            mime[name] = value

        mime.set_content(message.text or "")
        if message.html:
            mime.add_alternative(message.html, subtype="html")

        if message.attachment:
            maintype, _, subtype = message.attachment.content_type.partition("/")
            mime.add_attachment(
                message.attachment.content,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=message.attachment.filename,
            )
        return mime

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.smtp_secure:
            return smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=s.email_timeout_seconds)

        smtp = smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.email_timeout_seconds)
        smtp.ehlo()
        if smtp.has_extn("starttls"):
            smtp.starttls()
            smtp.ehlo()
        return smtp

    def send(self, message: OutgoingEmail) -> EmailResult:
        """Send message via SMTP.

        Args:
            message: Provider-neutral message

        Returns:
            EmailResult with the generated Message-ID or the SMTP error
        """
        if not self.is_available():
            return EmailResult(
                success=False,
                provider=self.provider_name,
                error="SMTP_HOST, SMTP_USER and SMTP_PASS environment variables not set",
            )

        try:
            mime = self.build_message(message)
            with self._connect() as smtp:
                smtp.login(self.settings.smtp_user, self.settings.smtp_pass)
                smtp.send_message(mime)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.error(f"SMTP send to {', '.join(message.to)} failed: {e}")
            return EmailResult(
                success=False,
                provider=self.provider_name,
                error=f"SMTP error: {e}",
            )

        logger.info(f"Email sent via SMTP to {', '.join(message.to)} (id={mime['Message-ID']})")
        return EmailResult(
            success=True,
            provider=self.provider_name,
            message_id=mime["Message-ID"],
        )
