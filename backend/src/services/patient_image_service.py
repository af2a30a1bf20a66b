"""
Patient image lifecycle.

Owns the two halves of the image protocol used by PatientRecordService:

* store() runs BEFORE the record write, so a persisted record never points
  at an object that does not exist yet.
* discard() runs only AFTER the record write that stops referencing the
  image has been confirmed. It is advisory: it reports its outcome as an
  ImageCleanupResult and never raises, because a leftover object is a
  storage-cost nuisance while failing the record operation would not be.
"""

import logging
import mimetypes
import os
import re
import secrets
from dataclasses import dataclass
from typing import Optional

from core.constants import IMAGE_TOKEN_BYTES
from core.exceptions import UploadError
from utils.datetime_utils import epoch_millis
from utils.file_storage import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"^[a-z0-9]{1,10}$")

CLEANUP_DELETED = "deleted"
CLEANUP_SKIPPED = "skipped"
CLEANUP_FAILED = "failed"


@dataclass(frozen=True)
class ImageUpload:
    """Raw image payload submitted with a create or update."""
    data: bytes
    filename: str
    content_type: Optional[str] = None


@dataclass(frozen=True)
class ImageCleanupResult:
    """Outcome of an advisory image discard. Never turned into an exception."""
    status: str
    url: Optional[str] = None
    object_name: Optional[str] = None
    reason: Optional[str] = None

    @property
    def deleted(self) -> bool:
        return self.status == CLEANUP_DELETED

    @property
    def failed(self) -> bool:
        return self.status == CLEANUP_FAILED


def generate_object_name(filename: Optional[str]) -> str:
    """
    Collision-resistant object name: random token, timestamp, original extension.

    Example: "9f86d081884c-1718000000000.jpg"
    """
    token = secrets.token_hex(IMAGE_TOKEN_BYTES)
    name = f"{token}-{epoch_millis()}"
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    if ext and _EXTENSION_RE.match(ext):
        name = f"{name}.{ext}"
    return name


class PatientImageService:
    """Uploads and removes patient photos in the blob store."""

    def __init__(self, blob_store: BlobStore):
        self.blob_store = blob_store

    def store(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        """
        Upload an image and return its public URL.

        Raises:
            UploadError: empty payload or storage failure. Not retried.
        """
        if not data:
            raise UploadError("Image payload is empty")

        object_name = generate_object_name(filename)
        content_type = content_type or mimetypes.guess_type(filename or "")[0] or "application/octet-stream"

        try:
            url = self.blob_store.put(object_name, data, content_type)
        except BlobStoreError as e:
            logger.error(f"Failed to upload image {object_name}: {e}")
            raise UploadError("Failed to upload image") from e

        if not url:
            raise UploadError("Image upload returned no URL")

        logger.info(f"Stored image {object_name} ({len(data)} bytes)")
        return url

    def store_upload(self, upload: ImageUpload) -> str:
        return self.store(upload.data, upload.filename, upload.content_type)

    def discard(self, url: Optional[str]) -> ImageCleanupResult:
        """
        Best-effort removal of the object behind url.

        Absent or foreign/malformed URLs are skipped. Storage failures are
        logged and reported as a failed result.
        """
        if not url:
            return ImageCleanupResult(status=CLEANUP_SKIPPED, reason="no image")

        object_name = self.blob_store.object_name_from_url(url)
        if object_name is None:
            logger.warning(f"Not discarding image with unrecognized URL: {url}")
            return ImageCleanupResult(status=CLEANUP_SKIPPED, url=url, reason="unrecognized url")

        try:
            self.blob_store.delete(object_name)
        except BlobStoreError as e:
            logger.error(f"Error deleting image {object_name}: {e}")
            return ImageCleanupResult(
                status=CLEANUP_FAILED, url=url, object_name=object_name, reason=str(e)
            )

        logger.info(f"Discarded image {object_name}")
        return ImageCleanupResult(status=CLEANUP_DELETED, url=url, object_name=object_name)

    def is_managed_url(self, url: Optional[str]) -> bool:
        """
        True if url is exactly the URL this service's storage hands out.

        Matching the path alone is not enough: a URL on another host with a
        well-formed object name would resolve to someone else's image.
        """
        object_name = self.blob_store.object_name_from_url(url)
        if object_name is None:
            return False
        return url == self.blob_store.public_url(object_name)

    def exists(self, url: Optional[str]) -> bool:
        """True if url is one of ours and its object is currently stored."""
        object_name = self.blob_store.object_name_from_url(url)
        if object_name is None:
            return False
        return self.blob_store.exists(object_name)
