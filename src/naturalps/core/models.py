"""Request-scoped data models for the generation pipeline."""

import base64
from dataclasses import dataclass
from pathlib import Path


@dataclass
class UploadedFile:
    """An uploaded image staged in scratch storage.

    Lives only for the duration of one request; the orchestrator removes
    ``path`` once the generation attempt has finished.
    """

    path: Path
    original_name: str
    content_type: str
    field_name: str

    def to_inline_part(self) -> "InlineImagePart":
        """Read the staged bytes and encode them for the generation API."""
        return InlineImagePart.from_bytes(self.path.read_bytes(), self.content_type)


@dataclass(frozen=True)
class InlineImagePart:
    """An image embedded directly in a generation request as base64."""

    mime_type: str
    data: str

    @classmethod
    def from_bytes(cls, payload: bytes, mime_type: str) -> "InlineImagePart":
        return cls(mime_type=mime_type, data=base64.b64encode(payload).decode("ascii"))

    def to_rest(self) -> dict:
        """Return the Generative Language REST representation."""
        return {"inlineData": {"mimeType": self.mime_type, "data": self.data}}

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass
class GenerationResult:
    """Outcome of one generation strategy.

    Attributes:
        text: Generated text, if any.
        image_url: Public URL of the generated image, if any.
        strategy: Name of the strategy that produced the result.
    """

    text: str | None = None
    image_url: str | None = None
    strategy: str = ""

    def has_content(self) -> bool:
        """Check whether the result carries text or an image."""
        return bool(self.text) or bool(self.image_url)
