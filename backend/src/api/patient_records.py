# pyright: reportMissingTypeStubs=false
"""
Patient Record API endpoints.

Boundary handlers only: parse the request, call PatientRecordService and
shape the response. Errors raised by the service are translated to HTTP
statuses by the exception handlers registered in main.py.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from auth.dependencies import SessionContext, require_authenticated
from core.sentinels import MISSING
from services.patient_record_service import PatientRecordService
from services.patient_search import build_export_rows
from api.responses import (
    PatientExportRow,
    PatientRecordCreateRequest,
    PatientRecordResponse,
    PatientRecordUpdateRequest,
)
from api.shared import fields_from_request, get_record_service, image_from_request, method_not_allowed

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/patients", summary="List patient records", response_model=List[PatientRecordResponse])
def list_patient_records(
    search: Optional[str] = Query(None, max_length=200, description="Filter by name, parent name, OP number or age."),
    session: SessionContext = Depends(require_authenticated),
    service: PatientRecordService = Depends(get_record_service),
) -> List[PatientRecordResponse]:
    """Get all patient records, newest first, optionally filtered by a search term."""
    records = service.search_records(search)
    return [PatientRecordResponse.model_validate(record) for record in records]


@router.post(
    "/patients",
    summary="Create a patient record",
    response_model=PatientRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_patient_record(
    body: PatientRecordCreateRequest,
    session: SessionContext = Depends(require_authenticated),
    service: PatientRecordService = Depends(get_record_service),
) -> PatientRecordResponse:
    """
    Create a patient record.

    A photo may be attached inline (image) or by URL from a previous
    /api/upload call (image_url). Inline photos are uploaded before the
    record is written.
    """
    image = image_from_request(body.image) if body.image else None
    record = service.create_record(fields_from_request(body), image=image, image_url=body.image_url)
    logger.info(f"{session.username} created patient record {record.id}")
    return PatientRecordResponse.model_validate(record)


@router.get("/patients/export", summary="Export patient records", response_model=List[PatientExportRow])
def export_patient_records(
    session: SessionContext = Depends(require_authenticated),
    service: PatientRecordService = Depends(get_record_service),
) -> List[PatientExportRow]:
    """Flat rows for spreadsheet export, newest first."""
    return [PatientExportRow(**row) for row in build_export_rows(service.list_records())]


# Registered before the {record_id} routes so "export" is never parsed as an id
router.add_api_route(
    "/patients/export",
    method_not_allowed(["GET"]),
    methods=["POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
    response_model=None,
)


@router.get("/patients/{record_id}", summary="Get a patient record", response_model=PatientRecordResponse)
def get_patient_record(
    record_id: int,
    session: SessionContext = Depends(require_authenticated),
    service: PatientRecordService = Depends(get_record_service),
) -> PatientRecordResponse:
    return PatientRecordResponse.model_validate(service.get_record(record_id))


@router.put("/patients/{record_id}", summary="Update a patient record", response_model=PatientRecordResponse)
def update_patient_record(
    record_id: int,
    body: PatientRecordUpdateRequest,
    session: SessionContext = Depends(require_authenticated),
    service: PatientRecordService = Depends(get_record_service),
) -> PatientRecordResponse:
    """
    Update a patient record.

    Omitted optional fields are cleared. The photo is replaced when image
    is sent, or set/removed when image_url is sent explicitly; otherwise it
    is kept. A replaced photo is deleted only after the record is saved.
    """
    image = image_from_request(body.image) if body.image else None
    image_url = body.image_url if "image_url" in body.model_fields_set else MISSING
    mutation = service.update_record(
        record_id, fields_from_request(body), image=image, image_url=image_url
    )
    if mutation.image_cleanup.failed:
        logger.warning(f"Old image of record {record_id} was not removed: {mutation.image_cleanup.reason}")
    logger.info(f"{session.username} updated patient record {record_id}")
    return PatientRecordResponse.model_validate(mutation.record)


@router.delete("/patients/{record_id}", summary="Delete a patient record", response_model=PatientRecordResponse)
def delete_patient_record(
    record_id: int,
    session: SessionContext = Depends(require_authenticated),
    service: PatientRecordService = Depends(get_record_service),
) -> PatientRecordResponse:
    """Delete a patient record and its photo. Returns the deleted record."""
    mutation = service.delete_record(record_id)
    if mutation.image_cleanup.failed:
        logger.warning(f"Image of deleted record {record_id} was not removed: {mutation.image_cleanup.reason}")
    logger.info(f"{session.username} deleted patient record {record_id}")
    return PatientRecordResponse.model_validate(mutation.record)


# Unsupported verbs: answer 405 with the full Allow list for each path
router.add_api_route(
    "/patients",
    method_not_allowed(["GET", "POST"]),
    methods=["PUT", "PATCH", "DELETE"],
    include_in_schema=False,
    response_model=None,
)
router.add_api_route(
    "/patients/{record_id}",
    method_not_allowed(["GET", "PUT", "DELETE"]),
    methods=["POST", "PATCH"],
    include_in_schema=False,
    response_model=None,
)
