"""Scratch and public file storage for NaturalPS.

Two directories are involved in every request:

- the **scratch** directory (``config.scratch_dir``) holds uploaded images and
  decoded model output for the lifetime of a single request;
- the **public** images directory (``config.public_images_dir``) holds copies
  that the browser can fetch by URL.  Files there are never deleted by the
  application.

Filenames are made unique with a millisecond timestamp plus a UUID4.  There is
no locking: two concurrent requests cannot collide in practice because the
random component differs, and promotion never overwrites an existing file.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import re
import shutil
import time
import uuid
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from naturalps.core.config import NaturalPSConfig
from naturalps.core.errors import StorageError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def ensure_directory(path: Path) -> Path:
    """Create *path* and its parents if they do not exist yet.

    Args:
        path: Directory to create.

    Returns:
        The same path, for chaining.

    Raises:
        StorageError: If the directory cannot be created for any reason other
            than already existing.
    """
    try:
        path.mkdir(parents=True, exist_ok=True, mode=0o755)
    except OSError as e:
        logger.error(f"Failed to create directory {path}: {e}")
        raise StorageError(f"Failed to create directory {path}: {e}") from e
    return path


def unique_name(suffix: str = "") -> str:
    """Return ``<epoch-millis>-<uuid4><suffix>``."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4()}{suffix}"


def sanitize_filename(name: str) -> str:
    """Reduce an uploaded filename to a safe basename."""
    base = Path(name or "").name
    return _UNSAFE_CHARS.sub("_", base).strip("._")


def sniff_image_type(payload: bytes) -> str | None:
    """Detect the MIME type of an image payload with Pillow.

    Returns:
        The MIME type (e.g. ``"image/png"``), or ``None`` if Pillow cannot
        identify the bytes as an image.
    """
    try:
        with Image.open(io.BytesIO(payload)) as img:
            return Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def extension_for(content_type: str | None) -> str:
    """Guess a file extension for *content_type* (empty string if unknown)."""
    if not content_type:
        return ""
    ext = mimetypes.guess_extension(content_type.split(";")[0].strip())
    # mimetypes maps image/jpeg to .jpg on most platforms, but not all
    return ".jpg" if ext == ".jpe" else (ext or "")


class TempStorage:
    """Manages the scratch and public image directories.

    Attributes:
        scratch_dir: Directory for request-scoped files.
        public_dir: Directory for browser-visible copies.
        url_prefix: URL path under which ``public_dir`` is served.
    """

    def __init__(self, config: NaturalPSConfig) -> None:
        self.scratch_dir = Path(config.scratch_dir)
        self.public_dir = Path(config.public_images_dir)
        self.url_prefix = config.public_url_prefix.rstrip("/")

    def write_scratch(self, data: bytes, original_name: str = "", suffix: str = "") -> Path:
        """Write *data* to a uniquely named scratch file.

        Args:
            data: Bytes to write.
            original_name: Uploaded filename, appended (sanitised) to the
                unique prefix so the original extension is preserved.
            suffix: Extension to use when there is no original name.

        Returns:
            Path of the new scratch file.

        Raises:
            StorageError: If the directory or file cannot be written.
        """
        ensure_directory(self.scratch_dir)
        safe_name = sanitize_filename(original_name)
        filename = unique_name(f"-{safe_name}" if safe_name else suffix)
        path = self.scratch_dir / filename
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write scratch file {path}: {e}") from e
        logger.debug(f"Wrote {len(data)} bytes to scratch file {path}")
        return path

    def promote_to_public(self, source: Path, content_type: str | None = None) -> str:
        """Copy *source* into the public directory under a fresh unique name.

        The source extension is preserved; when the source has none, one is
        derived from *content_type*.  An existing file is never overwritten.

        Args:
            source: File to copy.
            content_type: MIME type of the file.

        Returns:
            The URL path of the public copy, e.g. ``/temp-images/<name>.png``.

        Raises:
            StorageError: If the copy fails.
        """
        ensure_directory(self.public_dir)
        source = Path(source)
        extension = source.suffix or extension_for(content_type)

        target = self.public_dir / unique_name(extension)
        while target.exists():
            target = self.public_dir / unique_name(extension)

        logger.info(f"Promoting {source} to {target}")
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            logger.error(f"Failed to save image locally: {e}")
            raise StorageError("Unable to store image locally") from e

        return f"{self.url_prefix}/{target.name}"

    def discard(self, path: Path) -> None:
        """Remove a scratch file, logging instead of raising on failure."""
        try:
            Path(path).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to clean up temporary file {path}: {e}")
