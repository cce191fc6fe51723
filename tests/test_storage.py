"""
Tests for upload validation and the local image store
"""

import pytest

from photoblog.core.exceptions import (
    PayloadTooLargeException,
    StorageException,
    ValidationException,
)
from photoblog.services.storage import ImageStorage, validate_image

MAX_BYTES = 1024 * 1024


class TestValidateImage:

    def test_jpeg_accepted(self, sample_image_bytes):
        assert validate_image(sample_image_bytes, "photo.JPEG", "image/jpeg", MAX_BYTES) == "jpg"

    def test_png_accepted(self, png_bytes):
        assert validate_image(png_bytes, "photo.png", "image/png", MAX_BYTES) == "png"

    def test_non_image_content_type(self, sample_image_bytes):
        with pytest.raises(ValidationException):
            validate_image(sample_image_bytes, "photo.jpg", "text/plain", MAX_BYTES)

    @pytest.mark.parametrize("filename", ["photo.exe", "photo", None])
    def test_extension_not_allowed(self, sample_image_bytes, filename):
        with pytest.raises(ValidationException):
            validate_image(sample_image_bytes, filename, "image/jpeg", MAX_BYTES)

    def test_empty_file(self):
        with pytest.raises(ValidationException):
            validate_image(b"", "photo.jpg", "image/jpeg", MAX_BYTES)

    def test_too_large(self, sample_image_bytes):
        with pytest.raises(PayloadTooLargeException) as exc_info:
            validate_image(sample_image_bytes, "photo.jpg", "image/jpeg", 10)
        assert exc_info.value.status_code == 413

    def test_spoofed_content(self):
        with pytest.raises(ValidationException, match="not a supported image"):
            validate_image(b"<?php echo 'hi'; ?>", "photo.jpg", "image/jpeg", MAX_BYTES)

    def test_truncated_image(self, sample_image_bytes):
        with pytest.raises(ValidationException):
            validate_image(sample_image_bytes[:20], "photo.jpg", "image/jpeg", MAX_BYTES)


class TestImageStorage:

    @pytest.fixture
    def storage(self, tmp_path):
        return ImageStorage(tmp_path, base_url="/media/")

    def test_save_layout_and_url(self, storage, tmp_path, sample_image_bytes):
        key, url = storage.save(sample_image_bytes, "jpg")

        parts = key.split("/")
        assert parts[0] == "photos"
        assert len(parts) == 4
        assert parts[-1].endswith(".jpg")
        assert url == f"/media/{key}"
        assert (tmp_path / key).read_bytes() == sample_image_bytes

    def test_keys_are_unique(self, storage, sample_image_bytes):
        first, _ = storage.save(sample_image_bytes, "jpg")
        second, _ = storage.save(sample_image_bytes, "jpg")
        assert first != second

    def test_delete(self, storage, tmp_path, sample_image_bytes):
        key, _ = storage.save(sample_image_bytes, "jpg")

        assert storage.delete(key) is True
        assert not (tmp_path / key).exists()
        assert storage.delete(key) is False

    def test_delete_without_key(self, storage):
        assert storage.delete(None) is False

    def test_path_traversal_rejected(self, storage):
        with pytest.raises(StorageException):
            storage.path_for("../outside.jpg")
