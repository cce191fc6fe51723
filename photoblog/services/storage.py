"""
Image Storage
=============

Validates uploaded images and keeps them on the local filesystem under
``MEDIA_ROOT``. Files are laid out chronologically with random names:

    {MEDIA_ROOT}/photos/{year}/{month}/{uuid}.{ext}

The storage key (the path relative to ``MEDIA_ROOT``) is what the database
records; the public URL is ``MEDIA_URL`` joined with the key.
"""

import io
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from photoblog.core.exceptions import (
    PayloadTooLargeException,
    StorageException,
    ValidationException,
)

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}

IMAGE_MAGIC_BYTES = {
    "JPEG": [b"\xFF\xD8\xFF"],
    "PNG": [b"\x89PNG\r\n\x1a\n"],
    "GIF": [b"GIF87a", b"GIF89a"],
    "WEBP": [b"RIFF"],
}

# Decompression bomb guard
MAX_DIMENSION = 25000


def validate_image(
    content: bytes,
    filename: Optional[str],
    content_type: Optional[str],
    max_size_bytes: int,
) -> str:
    """Check that an upload is an image we are willing to store.

    Args:
        content: Raw file bytes.
        filename: Client-supplied filename, used only for its extension.
        content_type: Client-supplied MIME type.
        max_size_bytes: Upload size limit.

    Returns:
        The normalized file extension (without the dot).

    Raises:
        ValidationException: Wrong type, extension or unreadable image.
        PayloadTooLargeException: File larger than ``max_size_bytes``.
    """
    if not content_type or not content_type.startswith("image/"):
        raise ValidationException(f"File {filename} is not an image")

    extension = Path(filename).suffix.lower().lstrip(".") if filename else ""
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationException(
            f"File type .{extension} not allowed",
            details={"allowed": sorted(ALLOWED_EXTENSIONS)},
        )

    if not content:
        raise ValidationException("File is empty")

    if len(content) > max_size_bytes:
        raise PayloadTooLargeException(
            f"File too large. Maximum size: {max_size_bytes / 1024 / 1024:.1f}MB"
        )

    header = content[:16]
    if not any(
        header.startswith(signature)
        for signatures in IMAGE_MAGIC_BYTES.values()
        for signature in signatures
    ):
        logger.warning(f"Rejected upload {filename}: unrecognised file signature")
        raise ValidationException("File content is not a supported image")

    try:
        with Image.open(io.BytesIO(content)) as image:
            image.verify()
            width, height = image.size
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationException(f"Corrupted or unreadable image: {e}")

    if width > MAX_DIMENSION or height > MAX_DIMENSION:
        raise ValidationException(
            f"Image dimensions too large: {width}x{height} (max {MAX_DIMENSION})"
        )

    return "jpg" if extension == "jpeg" else extension


class ImageStorage:
    """Local filesystem store for uploaded images.

    Attributes:
        base_path: Root directory (``MEDIA_ROOT``).
        base_url: URL prefix the root is served under (``MEDIA_URL``).
    """

    def __init__(
        self,
        base_path: Union[str, Path],
        base_url: str = "/media",
        photos_subdir: str = "photos",
    ) -> None:
        self.base_path = Path(base_path)
        self.base_url = base_url.rstrip("/")
        self.photos_path = self.base_path / photos_subdir

        try:
            self.photos_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageException(f"Failed to create storage directory: {e}")

    def organize_file_path(self, file_extension: str) -> Path:
        """Generate a new, unique path for an image of the given type."""
        now = datetime.now()
        directory = self.photos_path / str(now.year) / f"{now.month:02d}"
        directory.mkdir(parents=True, exist_ok=True)
        return directory / f"{uuid.uuid4().hex}.{file_extension.lstrip('.')}"

    def url_for(self, storage_key: str) -> str:
        return f"{self.base_url}/{storage_key}"

    def save(self, content: bytes, file_extension: str) -> Tuple[str, str]:
        """Write image bytes to disk.

        Returns:
            ``(storage_key, url)`` for the new file.

        Raises:
            StorageException: If the file cannot be written.
        """
        file_path = self.organize_file_path(file_extension)
        try:
            file_path.write_bytes(content)
        except OSError as e:
            raise StorageException(f"Failed to save image: {e}")

        storage_key = file_path.relative_to(self.base_path).as_posix()
        logger.info(f"Stored image {storage_key} ({len(content)} bytes)")
        return storage_key, self.url_for(storage_key)

    def path_for(self, storage_key: str) -> Path:
        """Resolve a storage key, refusing keys that escape the root."""
        path = (self.base_path / storage_key).resolve()
        if not path.is_relative_to(self.base_path.resolve()):
            raise StorageException(f"Invalid storage key: {storage_key}")
        return path

    def delete(self, storage_key: Optional[str]) -> bool:
        """Delete a stored image.

        Returns:
            True if a file was removed, False if there was nothing to delete.
        """
        if not storage_key:
            return False

        file_path = self.path_for(storage_key)
        if not file_path.exists():
            logger.warning(f"File not found for deletion: {storage_key}")
            return False

        try:
            file_path.unlink()
        except OSError as e:
            raise StorageException(f"Failed to delete image: {e}")
        logger.info(f"Deleted image {storage_key}")
        return True
