# pyright: reportMissingTypeStubs=false
"""
Standalone image upload endpoint.

Stores a photo and returns its URL. The caller associates the URL with a
record afterwards by sending it as image_url on create or update.
"""

import logging

from fastapi import APIRouter, Depends

from auth.dependencies import SessionContext, require_authenticated
from core.exceptions import ValidationError
from services.patient_image_service import PatientImageService
from utils.image_payload import decode_image_data
from api.responses import ImageUploadRequest, ImageUploadResponse
from api.shared import get_image_service, method_not_allowed

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", summary="Upload a patient image", response_model=ImageUploadResponse)
def upload_image(
    body: ImageUploadRequest,
    session: SessionContext = Depends(require_authenticated),
    images: PatientImageService = Depends(get_image_service),
) -> ImageUploadResponse:
    if not body.file:
        raise ValidationError("No file provided", field="file")
    data, mime_type = decode_image_data(body.file, field="file")
    url = images.store(data, body.file_name or "image", body.file_type or mime_type)
    return ImageUploadResponse(url=url)


router.add_api_route(
    "/upload",
    method_not_allowed(["POST"]),
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
    response_model=None,
)
