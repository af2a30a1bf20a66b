"""
Unit tests for PatientImageService.
"""
import re
import pytest
from unittest.mock import Mock, patch

from core.exceptions import UploadError
from services.patient_image_service import (
    CLEANUP_DELETED,
    CLEANUP_FAILED,
    CLEANUP_SKIPPED,
    ImageUpload,
    PatientImageService,
    generate_object_name,
)
from utils.file_storage import BlobStore, BlobStoreError
from tests.conftest import stored_object_names


class TestGenerateObjectName:
    """Test object name generation."""

    def test_format(self):
        name = generate_object_name("Photo.JPG")
        assert re.match(r"^[0-9a-f]{12}-\d{13}\.jpg$", name)

    def test_without_extension(self):
        name = generate_object_name("photo")
        assert re.match(r"^[0-9a-f]{12}-\d{13}$", name)

    def test_unsafe_extension_is_dropped(self):
        assert "." not in generate_object_name("photo.p/ng")
        assert "." not in generate_object_name(None)

    def test_names_are_unique(self):
        names = {generate_object_name("a.png") for _ in range(200)}
        assert len(names) == 200


class TestStore:
    """Test image upload."""

    def test_store_returns_resolvable_url(self, image_service, blob_store):
        url = image_service.store(b"image-bytes", "photo.png")

        assert url.startswith("http://testserver/static/uploads/patient-images/")
        name = blob_store.object_name_from_url(url)
        assert blob_store.exists(name)
        assert image_service.exists(url)

    def test_store_upload(self, image_service, sample_image, blob_store):
        url = image_service.store_upload(sample_image)
        assert stored_object_names(blob_store) == [blob_store.object_name_from_url(url)]

    def test_empty_payload(self, image_service, blob_store):
        with pytest.raises(UploadError):
            image_service.store(b"", "photo.png")
        assert stored_object_names(blob_store) == []

    def test_backend_failure_becomes_upload_error(self, image_service, blob_store):
        with patch.object(blob_store, "put", side_effect=BlobStoreError("disk full")):
            with pytest.raises(UploadError) as exc_info:
                image_service.store(b"image-bytes", "photo.png")
        assert exc_info.value.message == "Failed to upload image"

    def test_content_type_is_guessed_from_filename(self):
        blob_store = Mock(spec=BlobStore)
        blob_store.put.return_value = "https://cdn.example.com/patient-images/x.jpg"
        service = PatientImageService(blob_store)

        service.store(b"image-bytes", "scan.jpg")

        assert blob_store.put.call_args[0][2] == "image/jpeg"

    def test_explicit_content_type_wins(self):
        blob_store = Mock(spec=BlobStore)
        blob_store.put.return_value = "https://cdn.example.com/patient-images/x"
        service = PatientImageService(blob_store)

        service.store_upload(ImageUpload(data=b"bytes", filename="upload", content_type="image/webp"))

        assert blob_store.put.call_args[0][2] == "image/webp"

    def test_missing_url_is_upload_error(self):
        blob_store = Mock(spec=BlobStore)
        blob_store.put.return_value = ""
        service = PatientImageService(blob_store)

        with pytest.raises(UploadError):
            service.store(b"bytes", "photo.png")


class TestDiscard:
    """Test advisory image removal."""

    def test_discard_existing(self, image_service, blob_store):
        url = image_service.store(b"image-bytes", "photo.png")

        result = image_service.discard(url)

        assert result.status == CLEANUP_DELETED
        assert result.url == url
        assert stored_object_names(blob_store) == []

    def test_discard_twice_is_harmless(self, image_service):
        url = image_service.store(b"image-bytes", "photo.png")
        image_service.discard(url)

        assert image_service.discard(url).status == CLEANUP_DELETED

    @pytest.mark.parametrize("url", [None, ""])
    def test_discard_nothing(self, image_service, url):
        assert image_service.discard(url).status == CLEANUP_SKIPPED

    @pytest.mark.parametrize("url", [
        "https://example.com/cat.png",
        "https://bucket.s3.amazonaws.com/other-prefix/abc.png",
        "http://testserver/static/uploads/patient-images/../../etc/passwd",
        "not a url",
    ])
    def test_unrecognized_url_is_skipped(self, image_service, blob_store, url):
        with patch.object(blob_store, "delete") as mock_delete:
            result = image_service.discard(url)

        assert result.status == CLEANUP_SKIPPED
        mock_delete.assert_not_called()

    def test_backend_failure_is_reported(self, image_service, blob_store):
        url = image_service.store(b"image-bytes", "photo.png")

        with patch.object(blob_store, "delete", side_effect=BlobStoreError("permission denied")):
            result = image_service.discard(url)

        assert result.status == CLEANUP_FAILED
        assert result.failed
        assert "permission denied" in result.reason
        assert blob_store.exists(result.object_name)


class TestUrlChecks:
    """Test ownership and existence checks."""

    def test_is_managed_url(self, image_service):
        url = image_service.store(b"image-bytes", "photo.png")

        assert image_service.is_managed_url(url)
        assert not image_service.is_managed_url("https://example.com/cat.png")
        assert not image_service.is_managed_url(None)

    def test_other_host_with_stored_name_is_not_managed(self, image_service, blob_store):
        url = image_service.store(b"image-bytes", "photo.png")
        name = blob_store.object_name_from_url(url)

        assert not image_service.is_managed_url(f"https://evil.example.com/patient-images/{name}")
        assert not image_service.is_managed_url(f"https://evil.example.com/static/uploads/patient-images/{name}")
        assert not image_service.is_managed_url(f"{url}?download=1")

    def test_exists_after_discard(self, image_service):
        url = image_service.store(b"image-bytes", "photo.png")
        image_service.discard(url)

        assert not image_service.exists(url)
        assert not image_service.exists("https://example.com/cat.png")
