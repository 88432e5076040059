"""Core functionality for NaturalPS.

1. **Configuration** (config.py): Pydantic Settings, ``NATURALPS_`` prefix.
2. **Storage** (storage.py): scratch files and public image promotion.
3. **Transport** (transport.py): timeout and TLS policy for outbound calls.
4. **Generation** (generation.py): SDK, REST and curl strategies plus the
   fallback chain.
5. **Orchestration** (orchestrator.py): one request from form fields to
   response model.
"""

from .config import NaturalPSConfig, config
from .errors import (
    DescriptionRequiredError,
    EmptyApiResponseError,
    EmptyResultError,
    GenerationFailedError,
    NaturalPSError,
    StorageError,
    TransportError,
)

__all__ = [
    "NaturalPSConfig",
    "config",
    "NaturalPSError",
    "DescriptionRequiredError",
    "EmptyApiResponseError",
    "EmptyResultError",
    "GenerationFailedError",
    "StorageError",
    "TransportError",
]
