"""API tests for POST /upload and the UploadThing routes."""

import json
from collections.abc import Generator
from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient

from services.api.dependencies import (
    get_app_settings,
    get_media_service,
    get_uploadthing_service,
)
from services.api.main import app
from services.shared.config import Settings
from services.storage.service import MediaStorageService, MediaType, MediaUploadResult
from services.storage.uploadthing import ProxyResponse, UploadThingService

UPLOAD = "services.storage.service.cloudinary.uploader.upload"


def make_settings(**overrides: object) -> Settings:
    values: dict = {
        "cloudinary_cloud_name": "demo",
        "cloudinary_api_key": "key",
        "cloudinary_api_secret": "secret",
        "upload_max_bytes": 64,
        "uploadthing_app_id": "app123",
        "uploadthing_secret": "sk_test",
        "upload_auth_policy": "enforce",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    """Test client wired to services built from test settings."""
    media_service = MediaStorageService(settings)
    uploadthing_service = UploadThingService(settings)
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_media_service] = lambda: media_service
    app.dependency_overrides[get_uploadthing_service] = lambda: uploadthing_service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestMediaUpload:
    def test_upload_success(self, client: TestClient) -> None:
        files = {"file": ("photo.jpg", b"\xff\xd8\xff\xe0jpeg", "image/jpeg")}

        with patch(UPLOAD) as mock_upload:
            mock_upload.return_value = {
                "secure_url": "https://res.cloudinary.com/demo/photo.jpg",
                "public_id": "warranty-claims/photo",
                "resource_type": "image",
                "bytes": 8,
                "format": "jpg",
            }
            response = client.post("/upload", files=files)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "success": True,
            "url": "https://res.cloudinary.com/demo/photo.jpg",
            "publicId": "warranty-claims/photo",
            "type": "IMAGE",
            "name": "photo.jpg",
            "size": 8,
            "format": "jpg",
        }
        assert mock_upload.call_args.args[0].read() == b"\xff\xd8\xff\xe0jpeg"

    @pytest.mark.parametrize(
        ("filename", "content_type"),
        [("run.exe", "image/png"), ("photo.png", "application/x-msdownload")],
    )
    def test_spoofed_type_rejected_without_vendor_call(
        self, client: TestClient, filename: str, content_type: str
    ) -> None:
        with patch(UPLOAD) as mock_upload:
            response = client.post("/upload", files={"file": (filename, b"data", content_type)})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid file type" in response.json()["error"]
        mock_upload.assert_not_called()

    def test_oversize_rejected_without_vendor_call(self, client: TestClient) -> None:
        with patch(UPLOAD) as mock_upload:
            response = client.post(
                "/upload", files={"file": ("clip.mp4", b"x" * 65, "video/mp4")}
            )

        assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        assert "too large" in response.json()["error"]
        mock_upload.assert_not_called()

    def test_empty_file_rejected(self, client: TestClient) -> None:
        with patch(UPLOAD) as mock_upload:
            response = client.post("/upload", files={"file": ("claim.pdf", b"", "application/pdf")})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Empty file"}
        mock_upload.assert_not_called()

    def test_missing_credentials_is_500(self) -> None:
        settings = make_settings(cloudinary_api_secret="")
        app.dependency_overrides[get_app_settings] = lambda: settings
        app.dependency_overrides[get_media_service] = lambda: MediaStorageService(settings)
        try:
            with patch(UPLOAD) as mock_upload:
                response = TestClient(app).post(
                    "/upload", files={"file": ("photo.jpg", b"data", "image/jpeg")}
                )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "Cloudinary is not configured" in response.json()["error"]
        mock_upload.assert_not_called()

    def test_vendor_failure_is_500(self, client: TestClient) -> None:
        failed = MediaUploadResult(success=False, error="Cloudinary upload failed: quota")

        with patch.object(MediaStorageService, "upload_bytes", return_value=failed):
            response = client.post("/upload", files={"file": ("a.gif", b"GIF89a", "image/gif")})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Cloudinary upload failed: quota"}

    def test_success_result_type_is_serialized_as_name(self, client: TestClient) -> None:
        result = MediaUploadResult(
            success=True, url="u", public_id="p", type=MediaType.VIDEO, name="c.mp4", size=3
        )

        with patch.object(MediaStorageService, "upload_bytes", return_value=result):
            response = client.post("/upload", files={"file": ("c.mp4", b"abc", "video/mp4")})

        assert response.json()["type"] == "VIDEO"


class TestUploadThingRoutes:
    def test_route_config(self, client: TestClient) -> None:
        response = client.get("/api/uploadthing")

        assert response.status_code == status.HTTP_200_OK
        config = response.json()[0]
        assert config["slug"] == "attachmentUploader"
        assert config["config"]["image"] == {"maxFileSize": "16MB", "maxFileCount": 5}

    def test_unauthenticated_request_rejected(self, client: TestClient) -> None:
        with patch.object(UploadThingService, "forward") as mock_forward:
            response = client.post("/api/uploadthing", json={"files": []})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "Unauthorized: Please sign in to upload files"}
        mock_forward.assert_not_called()

    def test_bypass_policy_accepts_anonymous_request(self) -> None:
        settings = make_settings(upload_auth_policy="bypass")
        service = UploadThingService(settings)
        app.dependency_overrides[get_app_settings] = lambda: settings
        app.dependency_overrides[get_uploadthing_service] = lambda: service
        upstream = ProxyResponse(status_code=200, content=b'{"ok":true}', content_type="application/json")
        try:
            with patch.object(UploadThingService, "forward", return_value=upstream):
                response = TestClient(app).post("/api/uploadthing", json={"files": []})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"ok": True}

    def test_authorized_request_forwarded(self, client: TestClient) -> None:
        upstream = ProxyResponse(status_code=201, content=b'{"url":"x"}', content_type="application/json")
        body = {"files": [{"name": "a.png", "size": 1000, "type": "image/png"}]}

        with patch.object(UploadThingService, "forward", return_value=upstream) as mock_forward:
            response = client.post(
                "/api/uploadthing/prepareUpload?slug=attachmentUploader",
                content=json.dumps(body),
                headers={"Authorization": "Bearer token", "Content-Type": "application/json"},
            )

        assert response.status_code == 201
        assert response.json() == {"url": "x"}
        method, path, headers, sent_body, params = mock_forward.call_args.args
        assert method == "POST"
        assert path == "/prepareUpload"
        assert headers["authorization"] == "Bearer token"
        assert json.loads(sent_body) == body
        assert params == {"slug": "attachmentUploader"}

    def test_only_the_uploadthing_prefix_is_proxied(self, client: TestClient) -> None:
        with patch.object(UploadThingService, "forward") as mock_forward:
            response = client.post(
                "/api/uploadthingXYZ", json={}, headers={"Authorization": "Bearer token"}
            )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        mock_forward.assert_not_called()

    def test_nested_path_forwarded(self, client: TestClient) -> None:
        upstream = ProxyResponse(status_code=200, content=b"{}", content_type="application/json")

        with patch.object(UploadThingService, "forward", return_value=upstream) as mock_forward:
            client.post(
                "/api/uploadthing/v6/pollUpload/abc",
                json={},
                headers={"Authorization": "Bearer token"},
            )

        assert mock_forward.call_args.args[1] == "/v6/pollUpload/abc"

    def test_root_path_forwarded_without_suffix(self, client: TestClient) -> None:
        upstream = ProxyResponse(status_code=200, content=b"{}", content_type="application/json")

        with patch.object(UploadThingService, "forward", return_value=upstream) as mock_forward:
            client.post("/api/uploadthing", json={}, headers={"Authorization": "Bearer token"})

        assert mock_forward.call_args.args[1] == ""

    def test_file_over_route_limit_rejected(self, client: TestClient) -> None:
        body = {"files": [{"name": "big.pdf", "size": 9 * 1024 * 1024, "type": "application/pdf"}]}

        with patch.object(UploadThingService, "forward") as mock_forward:
            response = client.post(
                "/api/uploadthing", json=body, headers={"Authorization": "Bearer token"}
            )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "8MB" in response.json()["error"]
        mock_forward.assert_not_called()

    def test_unknown_slug_is_404(self, client: TestClient) -> None:
        with patch.object(UploadThingService, "forward") as mock_forward:
            response = client.post(
                "/api/uploadthing?slug=nope",
                json={"files": [{"name": "a.png", "size": 1, "type": "image/png"}]},
                headers={"Authorization": "Bearer token"},
            )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        mock_forward.assert_not_called()

    def test_unreachable_upstream_is_500(self, client: TestClient) -> None:
        with patch.object(
            UploadThingService, "forward", side_effect=httpx.ConnectError("refused")
        ):
            response = client.post(
                "/api/uploadthing", json={}, headers={"Authorization": "Bearer token"}
            )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "refused" in response.json()["error"]

    def test_missing_uploadthing_credentials_is_500(self) -> None:
        settings = make_settings(uploadthing_secret="")
        app.dependency_overrides[get_app_settings] = lambda: settings
        app.dependency_overrides[get_uploadthing_service] = lambda: UploadThingService(settings)
        try:
            response = TestClient(app).post(
                "/api/uploadthing", json={}, headers={"Authorization": "Bearer token"}
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "UploadThing not configured" in response.json()["error"]


def test_forward_builds_upstream_request(settings: Settings) -> None:
    """forward() targets the app's v6 endpoint with the API key."""
    service = UploadThingService(settings)
    service._client = MagicMock()
    service._client.request.return_value = httpx.Response(
        200, content=b"{}", headers={"content-type": "application/json"}
    )

    result = service.forward(
        "POST",
        "/prepareUpload",
        {"authorization": "Bearer t", "cookie": "secret", "content-type": "application/json"},
        b"{}",
    )

    assert result.status_code == 200
    args, kwargs = service._client.request.call_args
    assert args == ("POST", "https://api.uploadthing.com/v6/app123/prepareUpload")
    assert kwargs["headers"]["x-uploadthing-api-key"] == "sk_test"
    assert kwargs["headers"]["authorization"] == "Bearer t"
    assert "cookie" not in kwargs["headers"]
