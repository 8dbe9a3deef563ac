"""Abstract base class for email providers.

Enables switching between the transactional API and SMTP while keeping one
interface and one result shape.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from services.mailer.message import OutgoingEmail
from services.shared.config import Settings


class EmailResult(BaseModel):
    """Result of a send attempt.

    Attributes:
        success: Whether the provider accepted the message
        provider: Name of provider that handled the send (e.g., 'sendgrid', 'smtp')
        message_id: Provider message id if available
        error: Error message if the send failed
    """

    success: bool
    provider: str
    message_id: str | None = None
    error: str | None = None


class EmailProvider(ABC):
    """Abstract base class for email providers.

    Example implementations:
    - SendGridEmailProvider: SendGrid v3 Mail Send API
    - SmtpEmailProvider: direct SMTP submission
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize provider with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    def send(self, message: OutgoingEmail) -> EmailResult:
        """Send one message, exactly once.

        Args:
            message: Provider-neutral message

        Returns:
            EmailResult with message id or error
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether this provider's credentials are configured.

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier (e.g., 'sendgrid', 'smtp')
        """
        pass
