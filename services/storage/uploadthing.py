"""UploadThing adapter.

Mirrors the UploadThing file-router model: each route slug accepts a set
of file categories, each with its own size and count limit. Requests are
authorized by a single configured policy, validated against the route,
and then forwarded to the UploadThing API:
https://docs.uploadthing.com/api-reference/openapi-spec
"""

import logging
import re
from collections import Counter
from typing import Any

import httpx
from pydantic import BaseModel, Field

from services.shared.config import Settings
from services.shared.errors import ConfigurationError
from services.storage.service import UploadRejectedError

logger = logging.getLogger(__name__)

UPLOADTHING_API_VERSION = "6.0.0"
DEFAULT_SLUG = "attachmentUploader"
FORWARDED_HEADERS = ("content-type", "authorization", "x-uploadthing-behavior")

_SIZE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(B|KB|MB|GB)\s*$", re.IGNORECASE)
_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_file_size(value: str) -> int:
    """Parse an UploadThing size string such as '16MB' into bytes."""
    match = _SIZE.match(value)
    if not match:
        raise ValueError(f"Invalid file size: {value!r}")
    number, unit = match.groups()
    return int(float(number) * _UNITS[unit.upper()])


class FileTypeLimit(BaseModel):
    max_file_size: str = Field(..., serialization_alias="maxFileSize")
    max_file_count: int = Field(..., serialization_alias="maxFileCount")

    @property
    def max_bytes(self) -> int:
        return parse_file_size(self.max_file_size)


FILE_ROUTES: dict[str, dict[str, FileTypeLimit]] = {
    "attachmentUploader": {
        "image": FileTypeLimit(max_file_size="16MB", max_file_count=5),
        "video": FileTypeLimit(max_file_size="64MB", max_file_count=2),
        "pdf": FileTypeLimit(max_file_size="8MB", max_file_count=5),
        "text": FileTypeLimit(max_file_size="2MB", max_file_count=5),
    },
}


def classify_file(content_type: str | None) -> str | None:
    """Map a MIME type to an UploadThing file category."""
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime == "application/pdf":
        return "pdf"
    for category in ("image", "video", "text"):
        if mime.startswith(f"{category}/"):
            return category
    return None


class UploadFileInfo(BaseModel):
    name: str
    size: int = Field(..., ge=0)
    type: str | None = None


class UploadUser(BaseModel):
    user_id: str


class UploadUnauthorizedError(Exception):
    """Raised when the upload authorization policy rejects a request."""


def authorize_upload(headers: dict[str, str], policy: str) -> UploadUser:
    """Apply the configured upload authorization policy.

    ``enforce`` requires an Authorization header; ``bypass`` accepts every
    request as the placeholder test user.

    Args:
        headers: Lower-cased request headers
        policy: 'enforce' or 'bypass'

    Returns:
        Identity attached to the upload

    Raises:
        UploadUnauthorizedError: If the policy rejects the request
    """
    if policy == "bypass":
        logger.warning("Upload authorization bypassed; accepting upload as test_user")
        return UploadUser(user_id="test_user")

    if not headers.get("authorization"):
        raise UploadUnauthorizedError("Unauthorized: Please sign in to upload files")
    return UploadUser(user_id=headers.get("x-user-id") or "authenticated_user")


class ProxyResponse(BaseModel):
    status_code: int
    content: bytes
    content_type: str


class UploadThingService:
    """Validating proxy in front of the UploadThing API."""

    def __init__(self, settings: Settings) -> None:
        """Initialize UploadThing service.

        Args:
            settings: Application settings with UploadThing credentials
        """
        self.settings = settings
        self._client = httpx.Client(timeout=settings.upload_timeout_seconds)

    def is_available(self) -> bool:
        return self.settings.uploadthing_configured

    def ensure_configured(self) -> None:
        """Raises ConfigurationError if credentials are missing."""
        if not self.is_available():
            raise ConfigurationError(
                "UploadThing not configured. "
                "UPLOADTHING_APP_ID and UPLOADTHING_SECRET must be set."
            )

    @staticmethod
    def route_config() -> list[dict[str, Any]]:
        """Route configuration in the shape the UploadThing client expects."""
        return [
            {
                "slug": slug,
                "config": {
                    category: limit.model_dump(by_alias=True)
                    for category, limit in limits.items()
                },
            }
            for slug, limits in FILE_ROUTES.items()
        ]

    @staticmethod
    def validate_files(slug: str, files: list[UploadFileInfo]) -> None:
        """Check requested files against the route's limits.

        Raises:
            UploadRejectedError: 404 for an unknown route, 400 for a file
                the route does not accept
        """
        limits = FILE_ROUTES.get(slug)
        if limits is None:
            raise UploadRejectedError(f"No file route found for slug {slug}", status_code=404)

        counts: Counter[str] = Counter()
        for info in files:
            category = classify_file(info.type)
            limit = limits.get(category) if category else None
            if limit is None:
                raise UploadRejectedError(
                    f"File type {info.type or 'unknown'} is not allowed for route {slug}"
                )
            if info.size > limit.max_bytes:
                raise UploadRejectedError(
                    f"File {info.name} exceeds the {limit.max_file_size} limit for {category}"
                )
            counts[category] += 1
            if counts[category] > limit.max_file_count:
                raise UploadRejectedError(
                    f"Too many {category} files: at most {limit.max_file_count} allowed"
                )

    def forward(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        body: bytes,
        params: dict[str, str] | None = None,
    ) -> ProxyResponse:
        """Forward a request to the UploadThing API.

        Args:
            method: HTTP method
            path: Sub-path after /api/uploadthing
            headers: Lower-cased incoming request headers
            body: Raw request body
            params: Query parameters

        Returns:
            Upstream status, body and content type

        Raises:
            ConfigurationError: If credentials are missing
            httpx.HTTPError: If UploadThing cannot be reached
        """
        self.ensure_configured()

        url = f"{self.settings.uploadthing_api_url}/v6/{self.settings.uploadthing_app_id}{path}"
        upstream_headers = {
            "x-uploadthing-api-key": self.settings.uploadthing_secret,
            "x-uploadthing-version": UPLOADTHING_API_VERSION,
        }
        for name in FORWARDED_HEADERS:
            if headers.get(name):
                upstream_headers[name] = headers[name]

        response = self._client.request(
            method,
            url,
            headers=upstream_headers,
            content=body or None,
            params=params,
        )
        logger.info(f"UploadThing {method} {path or '/'} -> {response.status_code}")

        return ProxyResponse(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type", "application/json"),
        )
