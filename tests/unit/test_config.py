"""Unit tests for configuration management."""

import os
from collections.abc import Generator

import pytest
from pydantic import ValidationError

from services.shared.config import Settings, get_settings

VENDOR_VARS = (
    "DATABASE_URL",
    "NETLIFY_DATABASE_URL",
    "CLOUDINARY_CLOUD_NAME",
    "VITE_CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
    "UPLOADTHING_APP_ID",
    "UPLOADTHING_SECRET",
    "SENDGRID_API_KEY",
    "SQUARE_ENVIRONMENT",
)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Clean environment variables before and after test."""
    original_env = dict(os.environ)
    env_vars = [k for k in os.environ if k.startswith("APP_") or k in VENDOR_VARS]
    for var in env_vars:
        del os.environ[var]
    yield
    os.environ.clear()
    os.environ.update(original_env)


def test_settings_defaults(clean_env: None) -> None:
    """Test that settings have correct default values."""
    settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.log_level == "INFO"
    assert settings.service_name == "cascade-connect-api"
    assert settings.service_version == "0.1.0"
    assert settings.upload_auth_policy == "enforce"
    assert settings.upload_max_bytes == 100 * 1024 * 1024
    assert settings.square_environment == "production"
    assert settings.cloudinary_configured is False
    assert settings.uploadthing_configured is False


def test_settings_from_env_vars(clean_env: None) -> None:
    """Test that settings can be overridden via environment variables."""
    os.environ["APP_ENVIRONMENT"] = "production"
    os.environ["APP_LOG_LEVEL"] = "ERROR"
    os.environ["APP_SERVICE_NAME"] = "test-service"

    settings = Settings(_env_file=None)

    assert settings.environment == "production"
    assert settings.log_level == "ERROR"
    assert settings.service_name == "test-service"


def test_settings_case_insensitive(clean_env: None) -> None:
    """Test that environment variables are case insensitive."""
    os.environ["app_log_level"] = "DEBUG"

    settings = Settings(_env_file=None)

    assert settings.log_level == "DEBUG"


def test_vendor_variables_use_deployed_names(clean_env: None) -> None:
    """Vendor credentials are read without the APP_ prefix."""
    os.environ["DATABASE_URL"] = "postgresql://u:p@db/app"
    os.environ["SENDGRID_API_KEY"] = "SG.key"
    os.environ["SQUARE_ENVIRONMENT"] = "sandbox"

    settings = Settings(_env_file=None)

    assert settings.database_url == "postgresql://u:p@db/app"
    assert settings.sendgrid_api_key == "SG.key"
    assert settings.square_environment == "sandbox"


def test_netlify_database_url_wins(clean_env: None) -> None:
    os.environ["NETLIFY_DATABASE_URL"] = "postgresql://netlify/db"
    os.environ["DATABASE_URL"] = "postgresql://plain/db"

    settings = Settings(_env_file=None)

    assert settings.database_url == "postgresql://netlify/db"


def test_vite_prefixed_cloudinary_variables(clean_env: None) -> None:
    os.environ["VITE_CLOUDINARY_CLOUD_NAME"] = "demo"
    os.environ["CLOUDINARY_API_KEY"] = "key"
    os.environ["CLOUDINARY_API_SECRET"] = "secret"

    settings = Settings(_env_file=None)

    assert settings.cloudinary_cloud_name == "demo"
    assert settings.cloudinary_configured is True


def test_auth_bypass_rejected_in_production(clean_env: None) -> None:
    """Bypassing upload authorization is a development-only setting."""
    with pytest.raises(ValidationError, match="bypass"):
        Settings(_env_file=None, environment="production", upload_auth_policy="bypass")


def test_auth_bypass_allowed_in_development(clean_env: None) -> None:
    settings = Settings(_env_file=None, upload_auth_policy="bypass")

    assert settings.upload_auth_policy == "bypass"


def test_invalid_auth_policy_rejected(clean_env: None) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, upload_auth_policy="sometimes")


def test_get_settings_factory() -> None:
    """Test that factory function returns Settings instance."""
    settings = get_settings()

    assert isinstance(settings, Settings)
