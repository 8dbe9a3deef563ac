"""Process-wide services and the FastAPI dependencies that hand them out.

Tests swap any of these through ``app.dependency_overrides``.
"""

from services.db.engine import get_connection
from services.mailer.base import EmailProvider
from services.mailer.factory import create_email_provider, find_email_provider
from services.payments.square import SquarePaymentLinkService
from services.shared.config import Settings, get_settings
from services.storage.service import MediaStorageService
from services.storage.uploadthing import UploadThingService

settings = get_settings()

media_service = MediaStorageService(settings)
uploadthing_service = UploadThingService(settings)
payment_link_service = SquarePaymentLinkService(settings)
email_provider = find_email_provider(settings)


def get_app_settings() -> Settings:
    return settings


def get_media_service() -> MediaStorageService:
    return media_service


def get_uploadthing_service() -> UploadThingService:
    return uploadthing_service


def get_payment_link_service() -> SquarePaymentLinkService:
    return payment_link_service


def get_email_provider() -> EmailProvider:
    """Configured email provider.

    Raises:
        ConfigurationError: If neither SendGrid nor SMTP is configured
    """
    if email_provider is None:
        return create_email_provider(settings)
    return email_provider


__all__ = [
    "get_app_settings",
    "get_connection",
    "get_email_provider",
    "get_media_service",
    "get_payment_link_service",
    "get_uploadthing_service",
]
