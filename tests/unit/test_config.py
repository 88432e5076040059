"""Tests for naturalps.core.config — configuration management.

Tests cover:
- Default values for transport and generation settings.
- Environment variable overrides, prefixed and conventional names.
- Automatic directory creation on initialisation.
- Derived public path helpers.
- Pydantic validation constraints.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from naturalps.core.config import NaturalPSConfig


def _config(temp_dir: Path, **overrides) -> NaturalPSConfig:
    return NaturalPSConfig(
        _env_file=None,
        scratch_dir=temp_dir / "tmp",
        public_dir=temp_dir / "public",
        **overrides,
    )


class TestConfigDefaults:
    """Verify that NaturalPSConfig provides sensible defaults."""

    def test_default_timeout_is_sixty_seconds(self, monkeypatch, temp_dir):
        monkeypatch.delenv("NATURALPS_REQUEST_TIMEOUT", raising=False)
        assert _config(temp_dir).request_timeout == 60.0

    def test_tls_verification_on_by_default(self, monkeypatch, temp_dir):
        monkeypatch.delenv("NATURALPS_VERIFY_TLS", raising=False)
        assert _config(temp_dir).verify_tls is True

    def test_default_strategy_chain(self, monkeypatch, temp_dir):
        monkeypatch.delenv("NATURALPS_FALLBACK_STRATEGIES", raising=False)
        assert _config(temp_dir).fallback_strategies == ["sdk", "curl"]

    def test_default_models(self, temp_dir):
        cfg = _config(temp_dir)
        assert cfg.primary_model == "gemini-2.0-flash-exp-image-generation"
        assert cfg.fallback_model == "gemini-1.5-pro"

    def test_default_generation_config(self, temp_dir):
        cfg = _config(temp_dir)
        assert cfg.temperature == 0.4
        assert cfg.top_k == 32
        assert cfg.top_p == 1.0
        assert cfg.max_output_tokens == 2048


class TestConfigEnvironment:
    """Environment variables override defaults."""

    def test_google_api_key_from_conventional_name(self, monkeypatch, temp_dir):
        monkeypatch.delenv("NATURALPS_GOOGLE_API_KEY", raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "AIza-from-env")
        assert _config(temp_dir).google_api_key == "AIza-from-env"

    def test_prefixed_setting(self, monkeypatch, temp_dir):
        monkeypatch.setenv("NATURALPS_VERIFY_TLS", "false")
        assert _config(temp_dir).verify_tls is False

    def test_strategy_list_from_json(self, monkeypatch, temp_dir):
        monkeypatch.setenv("NATURALPS_FALLBACK_STRATEGIES", '["sdk", "rest", "curl"]')
        assert _config(temp_dir).fallback_strategies == ["sdk", "rest", "curl"]

    def test_r2_values_are_read(self, monkeypatch, temp_dir):
        monkeypatch.setenv("R2_BUCKET_NAME", "bucket")
        cfg = _config(temp_dir)
        assert cfg.r2_bucket_name == "bucket"
        assert cfg.diagnostic_env()["R2_BUCKET_NAME"] == "bucket"


class TestConfigDirectoryCreation:
    """Verify that NaturalPSConfig creates required directories."""

    def test_scratch_dir_created(self, test_config: NaturalPSConfig):
        assert test_config.scratch_dir.is_dir()

    def test_public_images_dir_created(self, test_config: NaturalPSConfig):
        assert test_config.public_images_dir.is_dir()
        assert test_config.public_images_dir == test_config.public_dir / "temp-images"

    def test_public_url_prefix(self, test_config: NaturalPSConfig):
        assert test_config.public_url_prefix == "/temp-images"


class TestConfigValidation:
    """Pydantic constraints reject invalid values."""

    def test_timeout_must_be_positive(self, temp_dir):
        with pytest.raises(ValidationError):
            _config(temp_dir, request_timeout=0)

    def test_port_range(self, temp_dir):
        with pytest.raises(ValidationError):
            _config(temp_dir, server_port=80)

    def test_strategy_list_not_empty(self, temp_dir):
        with pytest.raises(ValidationError):
            _config(temp_dir, fallback_strategies=[])
