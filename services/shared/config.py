"""Shared configuration management for the API.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/

Application settings use the ``APP_`` prefix. Vendor credentials keep the
variable names used by the deployed environment (``DATABASE_URL``,
``SENDGRID_API_KEY``, ...) through validation aliases.
"""

from typing import Literal

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All application settings can be overridden via environment variables with
    the prefix 'APP_'. Example: APP_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    service_name: str = Field(
        default="cascade-connect-api",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )
    cors_allow_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed by the CORS middleware",
    )

    # Database
    database_url: str = Field(
        default="",
        validation_alias=AliasChoices("NETLIFY_DATABASE_URL", "DATABASE_URL", "database_url"),
        description="Postgres connection string",
    )
    database_sslmode: str = Field(
        default="prefer",
        description="libpq sslmode passed to the driver (URL query parameters are dropped)",
    )
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=10, ge=0)
    database_pool_recycle_seconds: int = Field(default=300, ge=1)

    # Cloudinary media storage
    cloudinary_cloud_name: str = Field(
        default="",
        validation_alias=AliasChoices(
            "CLOUDINARY_CLOUD_NAME", "VITE_CLOUDINARY_CLOUD_NAME", "cloudinary_cloud_name"
        ),
    )
    cloudinary_api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "CLOUDINARY_API_KEY", "VITE_CLOUDINARY_API_KEY", "cloudinary_api_key"
        ),
    )
    cloudinary_api_secret: str = Field(
        default="",
        validation_alias=AliasChoices(
            "CLOUDINARY_API_SECRET", "VITE_CLOUDINARY_API_SECRET", "cloudinary_api_secret"
        ),
    )
    cloudinary_folder: str = Field(
        default="warranty-claims",
        description="Cloudinary folder for uploaded media",
    )
    upload_max_bytes: int = Field(
        default=100 * MB,
        ge=1,
        description="Maximum accepted upload size in bytes",
    )
    upload_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Socket timeout for the vendor upload call",
    )

    # UploadThing
    uploadthing_app_id: str = Field(
        default="",
        validation_alias=AliasChoices("UPLOADTHING_APP_ID", "uploadthing_app_id"),
    )
    uploadthing_secret: str = Field(
        default="",
        validation_alias=AliasChoices("UPLOADTHING_SECRET", "uploadthing_secret"),
    )
    uploadthing_api_url: str = Field(
        default="https://api.uploadthing.com",
        description="UploadThing API base URL",
    )
    upload_auth_policy: Literal["enforce", "bypass"] = Field(
        default="enforce",
        description="enforce: require an Authorization header; bypass: accept as test user",
    )

    # Email (SendGrid preferred, SMTP when no API key is configured)
    sendgrid_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("SENDGRID_API_KEY", "sendgrid_api_key"),
    )
    sendgrid_reply_email: str = Field(
        default="",
        validation_alias=AliasChoices("SENDGRID_REPLY_EMAIL", "sendgrid_reply_email"),
    )
    smtp_host: str = Field(
        default="",
        validation_alias=AliasChoices("SMTP_HOST", "smtp_host"),
    )
    smtp_port: int = Field(
        default=587,
        validation_alias=AliasChoices("SMTP_PORT", "smtp_port"),
    )
    smtp_user: str = Field(
        default="",
        validation_alias=AliasChoices("SMTP_USER", "smtp_user"),
    )
    smtp_pass: str = Field(
        default="",
        validation_alias=AliasChoices("SMTP_PASS", "smtp_pass"),
    )
    smtp_secure: bool = Field(
        default=False,
        validation_alias=AliasChoices("SMTP_SECURE", "smtp_secure"),
        description="Implicit TLS (port 465); STARTTLS is used otherwise when offered",
    )
    smtp_from: str = Field(
        default="",
        validation_alias=AliasChoices("SMTP_FROM", "smtp_from"),
    )
    smtp_from_name: str = Field(
        default="Cascade Builder Services",
        validation_alias=AliasChoices("SMTP_FROM_NAME", "smtp_from_name"),
    )
    email_timeout_seconds: float = Field(default=30.0, gt=0)

    # Square payment links
    square_access_token: str = Field(
        default="",
        validation_alias=AliasChoices("SQUARE_ACCESS_TOKEN", "square_access_token"),
    )
    square_location_id: str = Field(
        default="",
        validation_alias=AliasChoices("SQUARE_LOCATION_ID", "square_location_id"),
    )
    square_environment: Literal["production", "sandbox"] = Field(
        default="production",
        validation_alias=AliasChoices("SQUARE_ENVIRONMENT", "square_environment"),
    )
    square_api_version: str = Field(default="2024-02-22")
    square_timeout_seconds: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def _reject_auth_bypass_in_production(self) -> "Settings":
        if self.environment == "production" and self.upload_auth_policy == "bypass":
            raise ValueError("upload_auth_policy=bypass is not allowed in production")
        return self

    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret
        )

    @property
    def uploadthing_configured(self) -> bool:
        return bool(self.uploadthing_app_id and self.uploadthing_secret)


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
