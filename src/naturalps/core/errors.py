"""Exception hierarchy for NaturalPS.

Every error raised on purpose by the generation pipeline derives from
:class:`NaturalPSError`.  Each class carries the user-facing ``message``
returned in the ``error`` field of the JSON body, the HTTP ``status_code``
used by the API layer, and a ``retryable`` flag that tells the browser
whether resubmitting the same payload is worth offering.

``str(exc)`` holds the technical detail and ends up in the ``details`` field.
"""

from __future__ import annotations


class NaturalPSError(Exception):
    """Base class for all NaturalPS errors."""

    message: str = "Failed to process the request"
    status_code: int = 500
    retryable: bool = False

    def to_payload(self) -> dict:
        """Return the JSON error body for this exception."""
        payload: dict = {"error": self.message}
        detail = str(self)
        if detail and detail != self.message:
            payload["details"] = detail
        if self.retryable:
            payload["retryable"] = True
        return payload


class DescriptionRequiredError(NaturalPSError):
    """The request carried no usable description."""

    message = "Description is required"
    status_code = 400

    def to_payload(self) -> dict:
        return {"error": self.message}


class StorageError(NaturalPSError):
    """A scratch or public file could not be created, written or copied."""


class TransportError(NaturalPSError):
    """An outbound call to the generation API failed."""

    message = "Failed to generate content"


class EmptyApiResponseError(TransportError):
    """The generation API answered without any candidate."""


class GenerationFailedError(NaturalPSError):
    """Every generation strategy in the chain failed.

    Attributes:
        attempts: ``(strategy_name, exception)`` pairs in the order tried.
    """

    message = "Failed to generate content"

    def __init__(self, detail: str, attempts: list[tuple[str, BaseException]] | None = None):
        super().__init__(detail)
        self.attempts = attempts or []


class EmptyResultError(NaturalPSError):
    """Generation succeeded but produced neither text nor an image."""

    message = "Failed to generate content: the model returned no text or image"
    retryable = True
