"""Media storage service using Cloudinary.

Handles warranty-claim attachments:
- Extension AND MIME allow-list (both must pass)
- Size cap checked before any vendor call
- Upload with automatic resource-type detection
- Mapping of Cloudinary resource types to IMAGE / VIDEO / DOCUMENT

Based on Cloudinary Python SDK:
https://cloudinary.com/documentation/django_image_and_video_upload
"""

import io
import logging
from enum import Enum
from pathlib import PurePath

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from pydantic import BaseModel

from services.shared.config import Settings
from services.shared.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Extension -> accepted MIME types
ALLOWED_MEDIA: dict[str, tuple[str, ...]] = {
    "jpg": ("image/jpeg", "image/jpg", "image/pjpeg"),
    "jpeg": ("image/jpeg", "image/jpg", "image/pjpeg"),
    "png": ("image/png",),
    "gif": ("image/gif",),
    "webp": ("image/webp",),
    "mp4": ("video/mp4",),
    "mov": ("video/quicktime", "video/mov"),
    "avi": ("video/x-msvideo", "video/avi", "video/msvideo"),
    "pdf": ("application/pdf",),
    "doc": ("application/msword",),
    "docx": ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",),
}
ALLOWED_FORMATS = list(ALLOWED_MEDIA)
ALLOWED_MIME_TYPES = frozenset(mime for mimes in ALLOWED_MEDIA.values() for mime in mimes)


class MediaType(str, Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    DOCUMENT = "DOCUMENT"

    @classmethod
    def from_resource_type(cls, resource_type: str | None) -> "MediaType":
        """Map Cloudinary's resource_type (image, video, raw)."""
        if resource_type == "image":
            return cls.IMAGE
        if resource_type == "video":
            return cls.VIDEO
        return cls.DOCUMENT


class UploadRejectedError(ValueError):
    """Upload refused before reaching the vendor.

    Attributes:
        status_code: HTTP status for the API response
    """

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class MediaUploadResult(BaseModel):
    """Result of a media upload.

    Attributes:
        success: Whether operation succeeded
        url: HTTPS URL of the stored asset
        public_id: Cloudinary public id
        type: Application media type
        name: Original filename
        size: Stored size in bytes
        format: Format reported by Cloudinary
        error: Error message if operation failed
    """

    success: bool
    url: str | None = None
    public_id: str | None = None
    type: MediaType | None = None
    name: str | None = None
    size: int | None = None
    format: str | None = None
    error: str | None = None


def file_extension(filename: str) -> str:
    return PurePath(filename).suffix.lower().lstrip(".")


def validate_upload(filename: str, content_type: str | None, size: int, max_bytes: int) -> None:
    """Check an upload against the allow-list and size cap.

    Extension and MIME type are checked independently; a spoofed MIME type
    does not rescue a disallowed extension and vice versa.

    Args:
        filename: Client-supplied filename
        content_type: Client-supplied MIME type
        size: Content length in bytes
        max_bytes: Size cap in bytes

    Raises:
        UploadRejectedError: If the file must not be uploaded
    """
    extension_ok = file_extension(filename) in ALLOWED_MEDIA
    mime_ok = (content_type or "").split(";")[0].strip().lower() in ALLOWED_MIME_TYPES
    if not (extension_ok and mime_ok):
        raise UploadRejectedError(
            "Invalid file type. Only images, videos, and documents are allowed."
        )

    if size == 0:
        raise UploadRejectedError("Empty file")

    if size > max_bytes:
        raise UploadRejectedError(
            f"File too large: {size / 1024 / 1024:.2f}MB (max {max_bytes / 1024 / 1024:.0f}MB)",
            status_code=413,
        )


class MediaStorageService:
    """Cloudinary-backed media storage."""

    def __init__(self, settings: Settings) -> None:
        """Initialize media storage service.

        Args:
            settings: Application settings with Cloudinary configuration
        """
        self.settings = settings

    def is_available(self) -> bool:
        """Check if Cloudinary credentials are configured."""
        return self.settings.cloudinary_configured

    def ensure_configured(self) -> None:
        """Raises ConfigurationError if credentials are missing."""
        self._credentials()

    def _credentials(self) -> dict[str, str]:
        """Get Cloudinary credentials for a single call.

        Raises:
            ConfigurationError: If any credential is missing
        """
        if not self.is_available():
            raise ConfigurationError(
                "Cloudinary is not configured. Please set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY, and CLOUDINARY_API_SECRET environment variables "
                "(or their VITE_ prefixed variants)."
            )
        return {
            "cloud_name": self.settings.cloudinary_cloud_name,
            "api_key": self.settings.cloudinary_api_key,
            "api_secret": self.settings.cloudinary_api_secret,
        }

    def upload_bytes(
        self,
        data: bytes,
        filename: str,
        folder: str | None = None,
    ) -> MediaUploadResult:
        """Upload bytes to Cloudinary.

        Args:
            data: File content (already validated)
            filename: Original filename, echoed back in the result
            folder: Target folder (defaults to settings.cloudinary_folder)

        Returns:
            MediaUploadResult with asset details or error

        Raises:
            ConfigurationError: If credentials are missing
        """
        credentials = self._credentials()
        folder = folder or self.settings.cloudinary_folder

        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                folder=folder,
                resource_type="auto",
                allowed_formats=ALLOWED_FORMATS,
                timeout=self.settings.upload_timeout_seconds,
                **credentials,
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary error uploading {filename}: {e}")
            return MediaUploadResult(
                success=False,
                name=filename,
                error=f"Cloudinary upload failed: {e}",
            )
        except Exception as e:
            logger.error(f"Error uploading {filename}: {e}")
            return MediaUploadResult(
                success=False,
                name=filename,
                error=f"Upload stream error: {e}",
            )

        if not result:
            return MediaUploadResult(
                success=False,
                name=filename,
                error="Cloudinary upload failed: No result returned",
            )

        logger.info(f"Uploaded {filename} to {folder} ({result.get('bytes')} bytes)")

        return MediaUploadResult(
            success=True,
            url=result.get("secure_url"),
            public_id=result.get("public_id"),
            type=MediaType.from_resource_type(result.get("resource_type")),
            name=filename,
            size=result.get("bytes"),
            format=result.get("format"),
        )
