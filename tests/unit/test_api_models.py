"""Tests for naturalps.api.models — response models.

Tests cover:
- camelCase wire names.
- Omission of absent results.
- Masked previews for the environment diagnostic.
- Error payloads produced from exceptions.
"""

from __future__ import annotations

from naturalps.api.models import EnvResponse, EnvVarStatus, ErrorResponse, GenerateResponse
from naturalps.core.errors import (
    DescriptionRequiredError,
    EmptyResultError,
    GenerationFailedError,
    StorageError,
)


class TestGenerateResponse:
    def test_wire_names(self):
        body = GenerateResponse(
            original_images=["/temp-images/a.png"],
            generated_text="hi",
            generated_image="/temp-images/b.png",
        ).to_json_dict()
        assert body == {
            "success": True,
            "originalImages": ["/temp-images/a.png"],
            "generatedText": "hi",
            "generatedImage": "/temp-images/b.png",
        }

    def test_absent_results_omitted(self):
        body = GenerateResponse(generated_text="hi").to_json_dict()
        assert "generatedImage" not in body
        assert body["originalImages"] == []


class TestEnvVarStatus:
    def test_preview_masks_value(self):
        status = EnvVarStatus.from_value("AIzaSecretKey")
        assert status.exists is True
        assert status.preview == "AIz*****"

    def test_missing_value(self):
        status = EnvVarStatus.from_value(None)
        assert status.exists is False
        assert status.preview is None

    def test_env_response_keeps_null_previews(self):
        body = EnvResponse(
            env_status={"R2_BUCKET_NAME": EnvVarStatus.from_value(None)},
            python_version="3.12.0",
            timestamp="2026-01-01T00:00:00+00:00",
        ).to_json_dict()
        assert body["envStatus"]["R2_BUCKET_NAME"] == {"exists": False, "preview": None}
        assert body["pythonVersion"] == "3.12.0"
        assert body["message"] == "Environment variables status"


class TestErrorPayloads:
    def test_description_required(self):
        payload = DescriptionRequiredError("Description is required").to_payload()
        assert payload == {"error": "Description is required"}

    def test_generation_failed(self):
        payload = GenerationFailedError("sdk: boom; curl: no candidates").to_payload()
        assert payload == {
            "error": "Failed to generate content",
            "details": "sdk: boom; curl: no candidates",
        }

    def test_empty_result_is_retryable(self):
        payload = ErrorResponse(**EmptyResultError("nothing").to_payload()).to_json_dict()
        assert payload["retryable"] is True
        assert payload["error"].startswith("Failed to generate content")

    def test_storage_error(self):
        payload = StorageError("Unable to store image locally").to_payload()
        assert payload["error"] == "Failed to process the request"
        assert payload["details"] == "Unable to store image locally"
