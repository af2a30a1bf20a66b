"""
Error taxonomy for patient record operations.

Services raise these; the HTTP layer maps them to status codes in main.py.
Messages are short and safe to show to the user.
"""

from typing import Optional


class PatientRecordError(Exception):
    """Base class for failures surfaced by the record lifecycle."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(PatientRecordError):
    """A required field is missing/empty or a value cannot be normalized."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class NotFoundError(PatientRecordError):
    """No patient record exists for the given id."""

    def __init__(self, record_id: object):
        self.record_id = record_id
        super().__init__("Patient record not found")


class UploadError(PatientRecordError):
    """The image could not be written to the blob store."""


class StoreError(PatientRecordError):
    """The record store could not complete a read or write."""
