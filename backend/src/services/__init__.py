"""
Services package for patient record business logic.

This package contains the record lifecycle, the image lifecycle, the record
store adapter and the pure search/export helpers used by the API layer.
"""

from .patient_image_service import PatientImageService, ImageUpload, ImageCleanupResult
from .patient_record_store import PatientRecordStore
from .patient_record_service import PatientRecordService, PatientRecordFields, RecordMutation

__all__ = [
    "PatientImageService",
    "ImageUpload",
    "ImageCleanupResult",
    "PatientRecordStore",
    "PatientRecordService",
    "PatientRecordFields",
    "RecordMutation",
]
