"""
Shared request/response models for API endpoints.

Request models are deliberately permissive (everything optional) so that
missing or empty required fields reach the record service and come back as
field-specific 400 errors instead of FastAPI's generic 422.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from utils.datetime_utils import ensure_utc


class ImagePayloadRequest(BaseModel):
    """Inline photo sent with a create or update."""
    data: str
    """Base64 bytes, optionally as a data URI."""
    file_name: str = "image"
    content_type: Optional[str] = None


class PatientRecordCreateRequest(BaseModel):
    """Request model for creating a patient record."""
    name: Optional[str] = None
    age: Optional[Union[int, str]] = None
    contact_details: Optional[str] = None
    parent_name: Optional[str] = None
    op_number: Optional[str] = None
    treatment: Optional[str] = None
    notes: Optional[str] = None
    image: Optional[ImagePayloadRequest] = None
    image_url: Optional[str] = None
    """URL returned by /api/upload, as an alternative to image."""


class PatientRecordUpdateRequest(PatientRecordCreateRequest):
    """
    Request model for updating a patient record.

    Optional fields that are omitted are cleared. image_url is only changed
    when it is sent (null removes the photo) or a new image is attached.
    """
    old_image_url: Optional[str] = None
    """Accepted for client compatibility; the stored record is authoritative."""


class PatientRecordResponse(BaseModel):
    """Response model for a patient record."""
    id: int
    name: str
    age: int
    parent_name: Optional[str] = None
    op_number: Optional[str] = None
    contact_details: str
    treatment: Optional[str] = None
    notes: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)  # type: ignore[return-value]


class PatientExportRow(BaseModel):
    """One spreadsheet row; absent optional values are empty strings."""
    id: int
    name: str
    age: int
    parent_name: str
    op_number: str
    contact_details: str
    treatment: str
    notes: str
    image_url: str


class ImageUploadRequest(BaseModel):
    """Standalone image upload."""
    file: Optional[str] = None
    """Base64 bytes, optionally as a data URI."""
    file_name: Optional[str] = None
    file_type: Optional[str] = None


class ImageUploadResponse(BaseModel):
    url: str


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    username: str


class ErrorResponse(BaseModel):
    detail: str
    type: str
    field: Optional[str] = None

