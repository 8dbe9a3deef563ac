"""Factory for selecting the email provider.

Providers are kept in an ordered registry. Selection walks the order and
takes the first provider whose credentials are configured; the selected
provider gets exactly one send attempt. A failed send never falls through
to the next provider.

Based on:
- Factory Pattern: https://refactoring.guru/design-patterns/factory-method/python
- Registry Pattern: Python Cookbook 3rd Edition, Recipe 9.22
"""

import logging

from services.mailer.base import EmailProvider
from services.mailer.sendgrid_provider import SendGridEmailProvider
from services.mailer.smtp_provider import SmtpEmailProvider
from services.shared.config import Settings
from services.shared.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Ordered registry of email providers (highest preference first)."""

    _providers: dict[str, type[EmailProvider]] = {
        "sendgrid": SendGridEmailProvider,
        "smtp": SmtpEmailProvider,
    }

    @classmethod
    def register(cls, name: str, provider_class: type[EmailProvider]) -> None:
        """Register a provider at the end of the preference order.

        Args:
            name: Provider identifier
            provider_class: Class implementing EmailProvider
        """
        cls._providers[name] = provider_class
        logger.info(f"Registered email provider: {name}")

    @classmethod
    def get_provider_class(cls, name: str) -> type[EmailProvider]:
        """Get provider class by name.

        Raises:
            ValueError: If provider not found in registry
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(f"Unknown email provider: '{name}'. Available providers: {available}")
        return cls._providers[name]

    @classmethod
    def list_providers(cls) -> list[str]:
        """List registered provider names in preference order."""
        return list(cls._providers.keys())


def find_email_provider(settings: Settings) -> EmailProvider | None:
    """Return the first configured provider, or None."""
    for name in ProviderRegistry.list_providers():
        provider = ProviderRegistry.get_provider_class(name)(settings)
        if provider.is_available():
            return provider
    return None


def create_email_provider(settings: Settings) -> EmailProvider:
    """Factory function to create the email provider for this configuration.

    Args:
        settings: Application settings with vendor credentials

    Returns:
        The preferred configured provider

    Raises:
        ConfigurationError: If no provider is configured

    Example:
        >>> provider = create_email_provider(Settings(sendgrid_api_key="SG.x"))
        >>> provider.provider_name
        'sendgrid'
    """
    provider = find_email_provider(settings)
    if provider is None:
        logger.error("No email provider configured")
        raise ConfigurationError(
            "Email configuration missing. "
            "Set SENDGRID_API_KEY or SMTP_HOST, SMTP_USER and SMTP_PASS environment variables."
        )

    logger.debug(f"Using email provider: {provider.provider_name}")
    return provider
