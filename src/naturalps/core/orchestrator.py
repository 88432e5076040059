"""Request orchestration for ``POST /api/generate``.

:class:`GenerationOrchestrator` turns a validated form submission into a
:class:`~naturalps.api.models.GenerateResponse`:

1. Reject a missing or blank description.
2. Stage each provided image (``image0``, ``image1``, ``image2``, in that
   order) in scratch storage and publish a browser-visible copy.
3. Encode the staged images as inline parts and call the
   :class:`~naturalps.core.generation.GenerationClient`.
4. Remove every staged input, whatever the outcome.
5. Fail with :class:`~naturalps.core.errors.EmptyResultError` when neither
   text nor an image came back.
"""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Sequence
from dataclasses import dataclass

from naturalps.api.models import GenerateResponse
from naturalps.core.errors import DescriptionRequiredError, EmptyResultError
from naturalps.core.generation import GenerationClient
from naturalps.core.models import UploadedFile
from naturalps.core.storage import TempStorage, sniff_image_type

logger = logging.getLogger(__name__)

MAX_IMAGES = 3
IMAGE_FIELDS = tuple(f"image{i}" for i in range(MAX_IMAGES))


@dataclass
class ImageUpload:
    """Raw bytes of one multipart image field."""

    field_name: str
    filename: str
    content_type: str | None
    data: bytes

    def is_empty(self) -> bool:
        # Browsers send an empty part for a file input with nothing selected.
        return not self.filename and not self.data


def resolve_content_type(upload: ImageUpload) -> str:
    """Pick the MIME type to declare for an upload.

    The declared type wins; otherwise the bytes are sniffed, then the
    filename is consulted.
    """
    declared = (upload.content_type or "").split(";")[0].strip()
    if declared and declared != "application/octet-stream":
        return declared
    guessed = sniff_image_type(upload.data) or mimetypes.guess_type(upload.filename)[0]
    return guessed or declared or "application/octet-stream"


class GenerationOrchestrator:
    """Coordinates storage and generation for one request at a time.

    Holds no per-request state, so a single instance is shared by all
    requests.
    """

    def __init__(self, storage: TempStorage, client: GenerationClient) -> None:
        self.storage = storage
        self.client = client

    def run(self, description: str | None, uploads: Sequence[ImageUpload | None]) -> GenerateResponse:
        """Handle one generation request.

        Args:
            description: The prompt text.
            uploads: Image fields in positional order; ``None`` entries and
                empty parts are skipped.  Only the first three are used.

        Returns:
            The response model for a successful generation.

        Raises:
            DescriptionRequiredError: If *description* is missing or blank.
            StorageError: If an upload cannot be staged or published.
            GenerationFailedError: If every generation strategy failed.
            EmptyResultError: If nothing was generated.
        """
        if not description or not description.strip():
            raise DescriptionRequiredError("Description is required")

        staged: list[UploadedFile] = []
        try:
            original_images: list[str] = []
            for upload in list(uploads)[:MAX_IMAGES]:
                if upload is None or upload.is_empty():
                    continue
                uploaded = self._stage(upload)
                staged.append(uploaded)
                original_images.append(
                    self.storage.promote_to_public(uploaded.path, uploaded.content_type)
                )

            logger.info(f"Processed {len(staged)} uploaded image(s)")
            parts = [uploaded.to_inline_part() for uploaded in staged]
            result = self.client.generate(description, parts)
        finally:
            for uploaded in staged:
                self.storage.discard(uploaded.path)

        if not result.has_content():
            raise EmptyResultError(f"Strategy '{result.strategy}' returned neither text nor an image")

        logger.info(
            f"Generation via '{result.strategy}' complete "
            f"(text={result.text is not None}, image={result.image_url is not None})"
        )
        return GenerateResponse(
            original_images=original_images,
            generated_text=result.text or None,
            generated_image=result.image_url,
        )

    def _stage(self, upload: ImageUpload) -> UploadedFile:
        content_type = resolve_content_type(upload)
        logger.info(
            f"Staging {upload.field_name}: {upload.filename or '(unnamed)'} "
            f"{content_type} {len(upload.data)} bytes"
        )
        path = self.storage.write_scratch(upload.data, upload.filename)
        return UploadedFile(
            path=path,
            original_name=upload.filename,
            content_type=content_type,
            field_name=upload.field_name,
        )
