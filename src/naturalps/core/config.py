"""Configuration management for NaturalPS.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the NATURALPS_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (NATURALPS_* prefix)
2. .env file in the project root
3. Default values defined in NaturalPSConfig

A handful of values are also read from their conventional, un-prefixed names
so that existing deployments keep working:

- ``GOOGLE_API_KEY`` for the Gemini API key
- ``R2_ACCOUNT_ID``, ``R2_ACCESS_KEY_ID``, ``R2_SECRET_ACCESS_KEY``,
  ``R2_BUCKET_NAME`` and ``R2_PUBLIC_URL`` for object storage.  These are
  not used by the generation path and are only surfaced by ``GET /api/env``.

Example .env file:
    GOOGLE_API_KEY=AIza...
    NATURALPS_REQUEST_TIMEOUT=60
    NATURALPS_VERIFY_TLS=true
    NATURALPS_FALLBACK_STRATEGIES=["sdk", "rest", "curl"]

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.

Usage Example
-------------
    from naturalps.core.config import config

    print(config.primary_model)
    print(config.public_images_dir)

Directory Management
--------------------
The configuration automatically creates required directories on initialization:
- scratch_dir: transient uploads and generated payloads
- public_images_dir: images served to the browser by generated filename

TLS Verification
----------------
``verify_tls`` defaults to True.  Setting it to False disables certificate
validation for every outbound call to the generation API (SDK, REST and curl
strategies alike).  This is a security-relevant deviation meant for
environments with broken certificate chains; the transport layer logs a
warning every time an unverified client is built.
"""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class NaturalPSConfig(BaseSettings):
    """Main configuration for NaturalPS.

    Attributes
    ----------
    Generation API:
        google_api_key : str | None
            Gemini API key (``NATURALPS_GOOGLE_API_KEY`` or ``GOOGLE_API_KEY``)
        primary_model : str
            Model used by the SDK strategy (text + image modalities)
        fallback_model : str
            Model used by the REST and curl fallback strategies
        api_base_url : str
            Base URL of the Generative Language REST API

    Transport:
        request_timeout : float
            Timeout in seconds for every outbound call
        verify_tls : bool
            Verify TLS certificates (set False only as an environment workaround)
        fallback_strategies : list[str]
            Ordered strategy names; the first one is the primary path
        curl_binary : str
            Executable used by the curl strategy

    Paths:
        scratch_dir : Path
            Directory for transient request files
        public_dir : Path
            Root of publicly served files
        public_images_subdir : str
            Sub-directory (and URL prefix) for promoted images
        static_dir, templates_dir : Path
            Frontend assets shipped with the package
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NATURALPS_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Generation API
    google_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NATURALPS_GOOGLE_API_KEY", "GOOGLE_API_KEY"),
        description="API key for the Gemini generation service",
    )
    primary_model: str = Field(
        default="gemini-2.0-flash-exp-image-generation",
        description="Model used by the SDK strategy",
    )
    fallback_model: str = Field(
        default="gemini-1.5-pro",
        description="Model used by the REST and curl strategies",
    )
    api_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Base URL of the Generative Language REST API",
    )

    # Transport
    request_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for outbound generation calls",
        gt=0,
    )
    verify_tls: bool = Field(
        default=True,
        description="Verify TLS certificates on outbound calls",
    )
    fallback_strategies: list[str] = Field(
        default_factory=lambda: ["sdk", "curl"],
        description="Ordered generation strategies; the first one is primary",
        min_length=1,
    )
    fallback_prompt_suffix: str = Field(
        default=" Please provide a detailed description for this request.",
        description="Appended to the prompt when a fallback strategy is used",
    )
    curl_binary: str = Field(default="curl", description="curl executable")

    # Generation config sent by the text-only fallbacks
    temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    top_k: int = Field(default=32, ge=1)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    max_output_tokens: int = Field(default=2048, ge=1)

    # Paths
    scratch_dir: Path = Field(
        default=Path("tmp"),
        description="Directory for transient request files",
    )
    public_dir: Path = Field(
        default=Path("public"),
        description="Root directory of publicly served files",
    )
    public_images_subdir: str = Field(
        default="temp-images",
        description="Sub-directory and URL prefix for promoted images",
    )
    static_dir: Path = Field(default=_PACKAGE_DIR / "static")
    templates_dir: Path = Field(default=_PACKAGE_DIR / "templates")

    # Server
    server_host: str = Field(default="0.0.0.0", description="Server bind address")
    server_port: int = Field(default=3000, ge=1024, le=65535)
    log_level: str = Field(default="INFO", description="Root logging level")

    # Object storage (diagnostic only)
    r2_account_id: str | None = Field(
        default=None, validation_alias=AliasChoices("NATURALPS_R2_ACCOUNT_ID", "R2_ACCOUNT_ID")
    )
    r2_access_key_id: str | None = Field(
        default=None, validation_alias=AliasChoices("NATURALPS_R2_ACCESS_KEY_ID", "R2_ACCESS_KEY_ID")
    )
    r2_secret_access_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NATURALPS_R2_SECRET_ACCESS_KEY", "R2_SECRET_ACCESS_KEY"),
    )
    r2_bucket_name: str | None = Field(
        default=None, validation_alias=AliasChoices("NATURALPS_R2_BUCKET_NAME", "R2_BUCKET_NAME")
    )
    r2_public_url: str | None = Field(
        default=None, validation_alias=AliasChoices("NATURALPS_R2_PUBLIC_URL", "R2_PUBLIC_URL")
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create required directories.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        self.public_images_dir.mkdir(parents=True, exist_ok=True)

    @property
    def public_images_dir(self) -> Path:
        """Directory that promoted images are copied into."""
        return self.public_dir / self.public_images_subdir

    @property
    def public_url_prefix(self) -> str:
        """URL path under which promoted images are served."""
        return "/" + self.public_images_subdir.strip("/")

    def diagnostic_env(self) -> dict[str, str | None]:
        """Return the values reported by ``GET /api/env`` keyed by variable name."""
        return {
            "R2_ACCOUNT_ID": self.r2_account_id,
            "R2_ACCESS_KEY_ID": self.r2_access_key_id,
            "R2_SECRET_ACCESS_KEY": self.r2_secret_access_key,
            "R2_BUCKET_NAME": self.r2_bucket_name,
            "R2_PUBLIC_URL": self.r2_public_url,
            "GOOGLE_API_KEY": self.google_api_key,
        }


# Global configuration instance
# Loads values from environment variables (NATURALPS_* prefix) and .env file.
config = NaturalPSConfig()
