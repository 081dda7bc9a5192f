import base64

import pytest
from unittest.mock import patch

from imagestation.api.errors import (
    AUTH_ERROR_MESSAGE, RATE_LIMIT_MESSAGE, BAD_RESPONSE_MESSAGE, INTERNAL_ERROR_MESSAGE, SERVICE_MESSAGES,
)
from imagestation.models.providers.base import (
    ImageGenerationResponse, InlineImage, ModelAuthError, ModelConfigError, ModelError, ModelRateLimited,
    ModelResponse, ModelResponseFormatError, ModelRetryable, ModelTimeout,
)
from imagestation.models.services.base import BackgroundRemovalResponse

CUTOUT = b"\x89PNG\r\n\x1a\ncutout"


class TestGenerateEndpoint:
    def test_empty_prompt_is_rejected_without_vendor_call(self, client, mock_manager):
        """
        Test: Empty prompt on the generation endpoint
        How: POST a whitespace-only prompt
        Ensures: 400 with a display message, and the vendor is never called
        """
        response = client.post("/api/v1/generate", json={"prompt": "   ", "size": "2K"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Please enter an image description"
        assert body["error_code"] == "invalid_input"
        mock_manager.generate_image.assert_not_called()

    def test_null_prompt_is_rejected_without_vendor_call(self, client, mock_manager):
        response = client.post("/api/v1/generate", json={"prompt": None, "size": "2K"})

        assert response.status_code == 400
        assert response.json()["error"] == "Please enter an image description"
        mock_manager.generate_image.assert_not_called()

    def test_success_returns_first_url(self, client, mock_manager, store):
        mock_manager.generate_image.return_value = ImageGenerationResponse(
            urls=["https://cdn.example/first.png", "https://cdn.example/second.png"], raw=None, meta={}
        )

        response = client.post("/api/v1/generate", json={"prompt": "a lighthouse", "size": "1K"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["url"] == "https://cdn.example/first.png"
        assert data["size"] == "1K"
        assert data["filename"].startswith("ai-generated-")
        assert data["download_url"] == f"/api/v1/results/{data['result_id']}/download"
        stored = store.get(data["result_id"])
        assert stored.source_url == "https://cdn.example/first.png"
        assert stored.data is None

    @pytest.mark.parametrize("error,status_code,message,error_code", [
        (ModelAuthError("bad key", status_code=401), 401, AUTH_ERROR_MESSAGE, "vendor_auth_failed"),
        (ModelRateLimited("slow down", status_code=429), 429, RATE_LIMIT_MESSAGE, "vendor_rate_limited"),
        (ModelTimeout("timed out"), 504, SERVICE_MESSAGES["generate"], "vendor_timeout"),
        (ModelRetryable("unavailable", status_code=503), 503, SERVICE_MESSAGES["generate"], "vendor_error"),
        (ModelError("odd failure"), 502, SERVICE_MESSAGES["generate"], "vendor_error"),
        (RuntimeError("bug"), 500, INTERNAL_ERROR_MESSAGE, "internal_error"),
    ])
    def test_vendor_failures_are_mapped(self, client, mock_manager, error, status_code, message, error_code):
        mock_manager.generate_image.side_effect = error

        response = client.post("/api/v1/generate", json={"prompt": "a lighthouse"})

        assert response.status_code == status_code
        assert response.json()["error"] == message
        assert response.json()["error_code"] == error_code

    def test_config_error_is_internal_and_hides_details(self, client, mock_manager):
        """
        Test: Misconfigured deployment
        How: The manager cannot resolve the provider named by the generation task
        Ensures: 500 with the generic message, and the provider name is not leaked
        """
        mock_manager.generate_image.side_effect = ModelConfigError("Unknown provider: ark")

        response = client.post("/api/v1/generate", json={"prompt": "a lighthouse"})

        assert response.status_code == 500
        assert response.json()["error"] == INTERNAL_ERROR_MESSAGE
        assert response.json()["error_code"] == "config_error"
        assert "ark" not in response.text

    def test_empty_vendor_data(self, client, mock_manager):
        mock_manager.generate_image.return_value = ImageGenerationResponse(urls=[], raw=None, meta={})

        response = client.post("/api/v1/generate", json={"prompt": "a lighthouse"})

        assert response.status_code == 502
        assert response.json()["error"] == BAD_RESPONSE_MESSAGE

    def test_options(self, client):
        response = client.get("/api/v1/generate/options")

        assert response.status_code == 200
        options = response.json()
        assert [s["value"] for s in options["sizes"]] == ["1K", "2K", "4K"]
        assert options["default_size"] == "2K"
        assert len(options["suggestions"]) == 4


class TestCompressEndpoint:
    def test_compress_then_download(self, client, png_bytes):
        """
        Test: Compression round trip through the API
        How: Upload a PNG at quality 60, then follow download_url
        Ensures: JPEG preview is returned and the download serves the same bytes as an attachment
        """
        response = client.post(
            "/api/v1/compress",
            files={"file": ("photo.png", png_bytes, "image/png")},
            data={"quality": "60"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["quality"] == 60
        assert data["filename"] == "compressed_photo.jpg"
        assert data["original_size"] == len(png_bytes)
        assert data["preview"].startswith("data:image/jpeg;base64,")

        download = client.get(data["download_url"])
        assert download.status_code == 200
        assert download.headers["content-type"] == "image/jpeg"
        assert "compressed_photo.jpg" in download.headers["content-disposition"]
        assert download.content == base64.b64decode(data["preview"].split(",", 1)[1])

    def test_default_quality(self, client, png_bytes):
        response = client.post("/api/v1/compress", files={"file": ("photo.png", png_bytes, "image/png")})
        assert response.json()["data"]["quality"] == 80

    def test_quality_out_of_range(self, client, png_bytes):
        response = client.post(
            "/api/v1/compress",
            files={"file": ("photo.png", png_bytes, "image/png")},
            data={"quality": "5"},
        )

        assert response.status_code == 400
        assert "between 10 and 100" in response.json()["error"]

    def test_not_an_image(self, client):
        response = client.post("/api/v1/compress", files={"file": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 400
        assert "Unable to decode image" in response.json()["error"]

    def test_missing_file(self, client):
        response = client.post("/api/v1/compress", data={"quality": "60"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"


class TestRemoveBackgroundEndpoint:
    def test_success(self, client, mock_manager, png_bytes):
        mock_manager.remove_background.return_value = BackgroundRemovalResponse(data=CUTOUT, media_type="image/png", meta={})

        response = client.post("/api/v1/remove-bg", files={"file": ("cat.png", png_bytes, "image/png")})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["filename"] == "no-bg_cat.png"
        assert data["processed_size"] == len(CUTOUT)
        assert data["preview"] == "data:image/png;base64," + base64.b64encode(CUTOUT).decode()
        mock_manager.remove_background.assert_called_once_with(
            task="background_removal", image=png_bytes, filename="cat.png", content_type="image/png",
        )

        download = client.get(data["download_url"])
        assert download.content == CUTOUT

    def test_non_image_upload(self, client, mock_manager):
        response = client.post("/api/v1/remove-bg", files={"file": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 400
        assert "Please choose an image file" in response.json()["error"]
        mock_manager.remove_background.assert_not_called()

    def test_vendor_error_title_is_shown(self, client, mock_manager, png_bytes):
        mock_manager.remove_background.side_effect = ModelError(
            "Background removal API error 400", status_code=400, detail="Could not identify foreground in image"
        )

        response = client.post("/api/v1/remove-bg", files={"file": ("cat.png", png_bytes, "image/png")})

        assert response.status_code == 400
        assert response.json()["error"] == "Could not identify foreground in image"

    def test_json_instead_of_image(self, client, mock_manager, png_bytes):
        mock_manager.remove_background.side_effect = ModelResponseFormatError("not an image")

        response = client.post("/api/v1/remove-bg", files={"file": ("cat.png", png_bytes, "image/png")})

        assert response.status_code == 502
        assert response.json()["error"] == BAD_RESPONSE_MESSAGE

    def test_missing_key(self, client, mock_manager, png_bytes):
        mock_manager.remove_background.side_effect = ModelAuthError("No API key configured", status_code=401)

        response = client.post("/api/v1/remove-bg", files={"file": ("cat.png", png_bytes, "image/png")})

        assert response.status_code == 401
        assert response.json()["error"] == AUTH_ERROR_MESSAGE


class TestRecognizeEndpoint:
    def test_success_with_default_question(self, client, mock_manager, png_bytes):
        mock_manager.call.return_value = ModelResponse(content="A plain red square", raw=None, meta={})
        default_question = mock_manager.prompts.load_prompt("recognize/describe@v1").defaults["question"]

        response = client.post("/api/v1/recognize", json={
            "imageData": base64.b64encode(png_bytes).decode(),
            "imageFormat": "png",
            "question": "",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["analysis"] == "A plain red square"
        assert data["question"] == default_question
        kwargs = mock_manager.call.call_args.kwargs
        assert kwargs["variables"] == {"question": default_question}
        assert kwargs["images"] == [InlineImage(data=png_bytes, format="png")]

    def test_data_url_is_accepted(self, client, mock_manager, png_bytes):
        mock_manager.call.return_value = ModelResponse(content="ok", raw=None, meta={})

        response = client.post("/api/v1/recognize", json={
            "imageData": "data:image/png;base64," + base64.b64encode(png_bytes).decode(),
            "imageFormat": "png",
            "question": "What colour is it?",
        })

        assert response.status_code == 200
        assert response.json()["data"]["question"] == "What colour is it?"

    @pytest.mark.parametrize("payload", [
        {"imageFormat": "png"},
        {"imageData": "aGVsbG8=", "imageFormat": ""},
        {"imageData": None, "imageFormat": None},
        {"imageData": "aGVsbG8=", "imageFormat": None},
        {},
    ])
    def test_missing_data_or_format(self, client, mock_manager, payload):
        response = client.post("/api/v1/recognize", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing image data or format"
        mock_manager.call.assert_not_called()

    def test_invalid_base64(self, client, mock_manager):
        response = client.post("/api/v1/recognize", json={"imageData": "@@not-base64@@", "imageFormat": "png"})

        assert response.status_code == 400
        mock_manager.call.assert_not_called()

    def test_rate_limited(self, client, mock_manager):
        mock_manager.call.side_effect = ModelRateLimited("429", status_code=429)

        response = client.post("/api/v1/recognize", json={"imageData": "aGVsbG8=", "imageFormat": "png"})

        assert response.status_code == 429
        assert response.json()["error"] == RATE_LIMIT_MESSAGE

    def test_options(self, client, mock_manager):
        response = client.get("/api/v1/recognize/options")

        assert response.status_code == 200
        options = response.json()
        assert options["default_question"] == mock_manager.prompts.load_prompt("recognize/describe@v1").defaults["question"]
        assert len(options["presets"]) == 7
        assert "What text appears in the image?" in options["presets"]


class TestResultDownload:
    def test_unknown_result(self, client):
        response = client.get("/api/v1/results/does-not-exist/download")

        assert response.status_code == 404
        assert response.json()["error"] == "Result not found or expired"

    def test_generated_image_is_fetched_once(self, client, store):
        result_id = store.save(filename="ai-generated-1.png", media_type="image/png", source_url="https://cdn.example/x.png")

        with patch("imagestation.api.routers.results.GenerationPipeline") as mock_pipeline_cls:
            mock_pipeline_cls.return_value.download.return_value = b"generated-bytes"
            first = client.get(f"/api/v1/results/{result_id}/download")
            second = client.get(f"/api/v1/results/{result_id}/download")

        assert first.status_code == 200
        assert first.content == b"generated-bytes"
        assert "ai-generated-1.png" in first.headers["content-disposition"]
        assert second.content == b"generated-bytes"
        mock_pipeline_cls.return_value.download.assert_called_once_with("https://cdn.example/x.png")

    def test_generated_image_fetch_failure(self, client, store):
        result_id = store.save(filename="ai-generated-1.png", media_type="image/png", source_url="https://cdn.example/x.png")

        with patch("imagestation.api.routers.results.GenerationPipeline") as mock_pipeline_cls:
            mock_pipeline_cls.return_value.download.side_effect = ModelError("gone", status_code=404)
            response = client.get(f"/api/v1/results/{result_id}/download")

        assert response.status_code == 404
        assert response.json()["error"] == SERVICE_MESSAGES["download"]


class TestHealth:
    def test_health_reports_missing_keys(self, client, mock_manager, monkeypatch):
        monkeypatch.delenv("TEST_ARK_API_KEY", raising=False)
        monkeypatch.setenv("TEST_REMOVE_BG_API_KEY", "present")
        mock_manager.config = {
            "providers": {"ark": {"settings": {"api_key_env": "TEST_ARK_API_KEY"}}},
            "services": {"removebg": {"settings": {"api_key_env": "TEST_REMOVE_BG_API_KEY"}}},
        }

        response = client.get("/health/")

        assert response.status_code == 200
        dependencies = response.json()["dependencies"]
        assert dependencies["ark"] == "API key missing"
        assert dependencies["removebg"] == "API key configured"

        ready = client.get("/health/ready").json()
        assert ready["ready"] is False
        assert "ark" in ready["reason"]

    def test_detailed(self, client, mock_manager):
        mock_manager.get_stats.return_value = {"generation": {"total_calls": 1}}

        body = client.get("/health/detailed").json()

        assert body["status"] == "healthy"
        assert body["tasks"] == {"generation": {"total_calls": 1}}

    def test_api_root(self, client):
        body = client.get("/api").json()
        assert body["endpoints"]["generate"] == "/api/v1/generate"
