"""Pydantic response models for the NaturalPS API.

Field names are snake_case in Python and camelCase on the wire, matching the
keys the browser reads.  Responses are serialised with ``exclude_none`` so
absent results are omitted rather than sent as ``null``.

Models
------
GenerateResponse
    Body of a successful ``POST /api/generate``.
ErrorResponse
    Body of every error response.
EnvVarStatus, EnvResponse
    Body of ``GET /api/env``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump with wire names, omitting unset results."""
        return self.model_dump(by_alias=True, exclude_none=True)


class GenerateResponse(_CamelModel):
    """Successful generation result.

    Attributes:
        success: Always ``True``.
        original_images: Public URLs of the uploaded images, in field order.
        generated_text: Text returned by the model, if any.
        generated_image: Public URL of the generated image, if any.
    """

    success: bool = True
    original_images: list[str] = Field(default_factory=list)
    generated_text: str | None = None
    generated_image: str | None = None


class ErrorResponse(_CamelModel):
    """Error body.  ``retryable`` marks empty results worth resubmitting."""

    error: str
    details: str | None = None
    retryable: bool | None = None


class EnvVarStatus(_CamelModel):
    exists: bool
    preview: str | None = None

    @classmethod
    def from_value(cls, value: str | None) -> EnvVarStatus:
        """Report presence and a masked preview (first three characters)."""
        if not value:
            return cls(exists=False, preview=None)
        return cls(exists=True, preview=f"{value[:3]}{'*' * 5}")


class EnvResponse(_CamelModel):
    message: str = "Environment variables status"
    env_status: dict[str, EnvVarStatus]
    python_version: str
    timestamp: str

    def to_json_dict(self) -> dict:
        # Keep preview: null for unset variables.
        return self.model_dump(by_alias=True)
