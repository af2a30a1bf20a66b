# Package initialization
# Import all models so they are registered on Base.metadata
from .patient_record import PatientRecord

__all__ = [
    "PatientRecord",
]
