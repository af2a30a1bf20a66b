# pyright: reportMissingTypeStubs=false
"""
Shared dependencies and helpers for the patient API endpoints.
"""

from typing import Callable, List

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from core.database import get_db
from services.patient_image_service import ImageUpload, PatientImageService
from services.patient_record_service import PatientRecordFields, PatientRecordService
from services.patient_record_store import PatientRecordStore
from utils.file_storage import BlobStore, get_blob_store
from utils.image_payload import decode_image_data
from api.responses import ImagePayloadRequest, PatientRecordCreateRequest


def get_image_service(blob_store: BlobStore = Depends(get_blob_store)) -> PatientImageService:
    return PatientImageService(blob_store)


def get_record_service(
    db: Session = Depends(get_db),
    images: PatientImageService = Depends(get_image_service),
) -> PatientRecordService:
    return PatientRecordService(PatientRecordStore(db), images)


def fields_from_request(body: PatientRecordCreateRequest) -> PatientRecordFields:
    return PatientRecordFields(
        name=body.name,
        age=body.age,
        contact_details=body.contact_details,
        parent_name=body.parent_name,
        op_number=body.op_number,
        treatment=body.treatment,
        notes=body.notes,
    )


def image_from_request(payload: ImagePayloadRequest) -> ImageUpload:
    data, mime_type = decode_image_data(payload.data, field="image")
    return ImageUpload(
        data=data,
        filename=payload.file_name,
        content_type=payload.content_type or mime_type,
    )


def method_not_allowed(allowed: List[str]) -> Callable[[], None]:
    """Endpoint that answers 405 and advertises the verbs a path supports."""
    def handler():
        raise HTTPException(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            detail="Method Not Allowed",
            headers={"Allow": ", ".join(allowed)},
        )
    return handler
