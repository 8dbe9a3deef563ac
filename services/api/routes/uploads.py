"""Upload routes: direct Cloudinary upload and the UploadThing proxy."""

import json
import logging

import httpx
from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from services.api import metrics
from services.api.dependencies import (
    get_app_settings,
    get_media_service,
    get_uploadthing_service,
)
from services.shared.config import Settings
from services.storage.service import (
    MediaStorageService,
    UploadRejectedError,
    validate_upload,
)
from services.storage.uploadthing import (
    DEFAULT_SLUG,
    UploadFileInfo,
    UploadThingService,
    UploadUnauthorizedError,
    authorize_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.post("/upload")
async def upload_media(
    file: UploadFile = File(..., description="Image, video, PDF or Word document"),  # noqa: B008
    media_service: MediaStorageService = Depends(get_media_service),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Upload one warranty-claim attachment to Cloudinary.

    ## Requirements

    - **File Types**: JPG, PNG, GIF, WEBP, MP4, MOV, AVI, PDF, DOC, DOCX
      (extension and MIME type must both be allowed)
    - **Max Size**: 100MB (configurable)

    ## Error Handling

    - Returns 400 if the file is empty or not an allowed type
    - Returns 413 if the file is over the size limit
    - Returns 500 if Cloudinary is not configured or the upload fails
    """
    # Missing credentials fail before the file is validated or sent anywhere
    media_service.ensure_configured()

    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    content = await file.read(settings.upload_max_bytes + 1)

    try:
        validate_upload(file.filename, file.content_type, len(content), settings.upload_max_bytes)
    except UploadRejectedError as e:
        metrics.media_uploads_total.labels(status="rejected").inc()
        logger.info(f"Rejected upload {file.filename} ({file.content_type}): {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    metrics.media_upload_size_bytes.observe(len(content))

    result = await run_in_threadpool(media_service.upload_bytes, content, file.filename)
    if not result.success:
        metrics.media_uploads_total.labels(status="failed").inc()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error or "Upload failed",
        )

    metrics.media_uploads_total.labels(status="success").inc()
    return {
        "success": True,
        "url": result.url,
        "publicId": result.public_id,
        "type": result.type,
        "name": result.name,
        "size": result.size,
        "format": result.format,
    }


@router.get("/api/uploadthing")
def uploadthing_route_config(
    uploadthing: UploadThingService = Depends(get_uploadthing_service),
) -> list[dict]:
    """File routes and their limits, as the UploadThing client expects."""
    return uploadthing.route_config()


@router.post("/api/uploadthing")
@router.post("/api/uploadthing/{path:path}")
async def uploadthing_proxy(
    request: Request,
    uploadthing: UploadThingService = Depends(get_uploadthing_service),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Authorize, validate and forward an UploadThing request."""
    uploadthing.ensure_configured()

    headers = {name.lower(): value for name, value in request.headers.items()}
    try:
        user = authorize_upload(headers, settings.upload_auth_policy)
    except UploadUnauthorizedError as e:
        logger.warning(f"Upload rejected: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e

    path = request.path_params.get("path", "")
    body = await request.body()
    _validate_requested_files(uploadthing, request.query_params.get("slug"), body)

    try:
        upstream = await run_in_threadpool(
            uploadthing.forward,
            "POST",
            f"/{path}" if path else "",
            headers,
            body,
            dict(request.query_params),
        )
    except httpx.HTTPError as e:
        logger.error(f"UploadThing request failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Upload failed: {e}",
        ) from e

    logger.info(f"UploadThing request by {user.user_id} returned {upstream.status_code}")
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.content_type,
    )


def _validate_requested_files(uploadthing: UploadThingService, slug: str | None, body: bytes) -> None:
    """Check the file list of an upload request, if the body carries one."""
    try:
        payload = json.loads(body) if body else None
    except ValueError:
        return
    if not isinstance(payload, dict) or "files" not in payload:
        return

    try:
        files = [UploadFileInfo.model_validate(item) for item in payload["files"]]
        uploadthing.validate_files(slug or DEFAULT_SLUG, files)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file list: {e.error_count()} error(s)",
        ) from e
    except UploadRejectedError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
