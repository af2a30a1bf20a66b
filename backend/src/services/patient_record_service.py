"""
Patient record lifecycle.

Validates and normalizes patient fields and fixes the order in which the
record store and the image store are touched. The ordering is the contract
of this module and must not be rearranged:

Create
    1. validate fields                      -> ValidationError, nothing touched
    2. upload the image, if any             -> UploadError, no record written
    3. insert the record with its image_url -> StoreError

Update
    1. validate fields                      -> ValidationError, nothing touched
    2. look up the record                   -> NotFoundError, nothing uploaded
    3. upload the new image, if any         -> UploadError, record untouched
    4. write the record                     -> StoreError, old image kept
    5. discard the old image (advisory)     only once step 4 is confirmed

Delete
    1. look up the record (only index from id to image_url) -> NotFoundError
    2. delete the record                    -> StoreError, image kept
    3. discard its image (advisory)         only once step 2 is confirmed

Advisory discards report an ImageCleanupResult on the returned RecordMutation
instead of raising.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.exceptions import NotFoundError, StoreError, UploadError, ValidationError
from core.sentinels import MISSING
from models.patient_record import PatientRecord
from services.patient_image_service import (
    CLEANUP_FAILED,
    CLEANUP_SKIPPED,
    ImageCleanupResult,
    ImageUpload,
    PatientImageService,
)
from services.patient_record_store import PatientRecordStore
from services.patient_search import filter_patient_records
from utils.file_storage import BlobStoreError
from utils.patient_validators import (
    OPTIONAL_TEXT_FIELDS,
    normalize_age,
    normalize_optional_text,
    validate_required_text,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatientRecordFields:
    """Raw, unvalidated patient fields as submitted by a caller."""
    name: Any = None
    age: Any = None
    contact_details: Any = None
    parent_name: Any = None
    op_number: Any = None
    treatment: Any = None
    notes: Any = None


@dataclass(frozen=True)
class RecordMutation:
    """Result of an update or delete: the record plus the advisory cleanup outcome."""
    record: PatientRecord
    image_cleanup: ImageCleanupResult = field(
        default_factory=lambda: ImageCleanupResult(status=CLEANUP_SKIPPED, reason="no image change")
    )


def validate_record_fields(fields: PatientRecordFields) -> Dict[str, Any]:
    """
    Validate required fields and normalize all of them.

    Required: name, age, contact_details (non-empty after trimming).
    Optional text fields that are empty become None.
    """
    values: Dict[str, Any] = {
        "name": validate_required_text(fields.name, "name"),
        "age": normalize_age(fields.age),
        "contact_details": validate_required_text(fields.contact_details, "contact_details"),
    }
    for key in OPTIONAL_TEXT_FIELDS:
        values[key] = normalize_optional_text(getattr(fields, key), key)
    return values


class PatientRecordService:
    """Create, read, update and delete patient records together with their photos."""

    def __init__(self, store: PatientRecordStore, images: PatientImageService):
        self.store = store
        self.images = images

    # ===== Reads =====

    def get_record(self, record_id: int) -> PatientRecord:
        record = self.store.get_by_id(record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record

    def list_records(self) -> List[PatientRecord]:
        """All records, newest first."""
        return self.store.get_all()

    def search_records(self, search: Optional[str]) -> List[PatientRecord]:
        return filter_patient_records(self.list_records(), search)

    # ===== Writes =====

    def create_record(
        self,
        fields: PatientRecordFields,
        image: Optional[ImageUpload] = None,
        image_url: Optional[str] = None,
    ) -> PatientRecord:
        """
        Create a patient record, uploading its photo first.

        Args:
            fields: Submitted patient fields
            image: Raw photo to upload before the record is written
            image_url: URL from a previous standalone upload, used instead of image

        Raises:
            ValidationError: Missing/invalid field, or unusable image_url
            UploadError: Photo upload failed; no record was written
            StoreError: Record insert failed
        """
        values = validate_record_fields(fields)
        self._reject_both_image_sources(image, image_url)

        uploaded_url: Optional[str] = None
        if image is not None:
            uploaded_url = self.images.store_upload(image)
            values["image_url"] = uploaded_url
        elif image_url:
            self._verify_existing_image(image_url)
            values["image_url"] = image_url
        else:
            values["image_url"] = None

        try:
            record = self.store.insert(values)
        except StoreError:
            if uploaded_url:
                logger.warning(f"Create abandoned after upload; image left unreferenced: {uploaded_url}")
            raise

        logger.info(f"Created patient record {record.id}")
        return record

    def update_record(
        self,
        record_id: int,
        fields: PatientRecordFields,
        image: Optional[ImageUpload] = None,
        image_url: Any = MISSING,
    ) -> RecordMutation:
        """
        Replace a record's fields, optionally swapping its photo.

        Omitted optional fields are cleared. image_url is only changed when a
        new image is uploaded or image_url is passed explicitly (None removes
        the photo). The previous photo is discarded after the write succeeds.

        Raises:
            ValidationError: Missing/invalid field, or unusable image_url
            NotFoundError: No record with record_id
            UploadError: Photo upload failed; the record was not modified
            StoreError: Record write failed; the previous photo is kept
        """
        values = validate_record_fields(fields)
        self._reject_both_image_sources(image, image_url or None)

        current = self.store.get_by_id(record_id)
        if current is None:
            raise NotFoundError(record_id)
        old_image_url = current.image_url

        uploaded_url: Optional[str] = None
        if image is not None:
            uploaded_url = self.images.store_upload(image)
            values["image_url"] = uploaded_url
        elif image_url is not MISSING:
            if image_url and image_url != old_image_url:
                self._verify_existing_image(image_url)
            values["image_url"] = image_url or None

        try:
            updated = self.store.update(record_id, values)
        except StoreError:
            if uploaded_url:
                logger.warning(
                    f"Update of record {record_id} failed after upload; "
                    f"keeping previous image, new image left unreferenced: {uploaded_url}"
                )
            raise

        if updated is None:
            # Deleted between lookup and write; nothing can reference the new upload
            if uploaded_url:
                logger.warning(f"Record {record_id} vanished during update; discarding new image")
                self.images.discard(uploaded_url)
            raise NotFoundError(record_id)

        cleanup = ImageCleanupResult(status=CLEANUP_SKIPPED, reason="no image change")
        if "image_url" in values and old_image_url and old_image_url != updated.image_url:
            cleanup = self._discard_if_unreferenced(old_image_url)

        logger.info(f"Updated patient record {record_id}")
        return RecordMutation(record=updated, image_cleanup=cleanup)

    def delete_record(self, record_id: int) -> RecordMutation:
        """
        Delete a record, then its photo.

        Raises:
            NotFoundError: No record with record_id
            StoreError: Record delete failed; the photo is kept
        """
        current = self.store.get_by_id(record_id)
        if current is None:
            raise NotFoundError(record_id)
        image_url = current.image_url

        deleted = self.store.delete(record_id)
        if deleted is None:
            raise NotFoundError(record_id)

        cleanup = self._discard_if_unreferenced(image_url)
        logger.info(f"Deleted patient record {record_id} (image cleanup: {cleanup.status})")
        return RecordMutation(record=deleted, image_cleanup=cleanup)

    # ===== Helpers =====

    @staticmethod
    def _reject_both_image_sources(image: Optional[ImageUpload], image_url: Optional[str]) -> None:
        if image is not None and image_url:
            raise ValidationError("Provide either an image or an image_url, not both", field="image")

    def _verify_existing_image(self, image_url: str) -> None:
        """A caller-supplied URL must be ours and must exist before a record may reference it."""
        if not self.images.is_managed_url(image_url):
            raise ValidationError("Image URL is not a stored patient image", field="image_url")
        try:
            exists = self.images.exists(image_url)
        except BlobStoreError as e:
            logger.error(f"Could not verify image {image_url}: {e}")
            raise UploadError("Could not verify image") from e
        if not exists:
            raise ValidationError("Image URL does not point to an existing image", field="image_url")

    def _discard_if_unreferenced(self, image_url: Optional[str]) -> ImageCleanupResult:
        """Advisory discard that leaves images still used by another record alone."""
        if not image_url:
            return ImageCleanupResult(status=CLEANUP_SKIPPED, reason="no image")
        try:
            references = self.store.count_image_references(image_url)
        except StoreError as e:
            logger.error(f"Skipping discard of {image_url}; reference check failed")
            return ImageCleanupResult(status=CLEANUP_FAILED, url=image_url, reason=e.message)
        if references:
            logger.info(f"Image {image_url} still referenced by {references} record(s); keeping it")
            return ImageCleanupResult(status=CLEANUP_SKIPPED, url=image_url, reason="still referenced")
        return self.images.discard(image_url)
