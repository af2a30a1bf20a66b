"""
Record store adapter for patient records.

Thin SQLAlchemy wrapper exposing the operations the record lifecycle needs.
Not-found is returned as None; database failures are rolled back and raised
as StoreError so that no partial state is assumed committed.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from core.exceptions import StoreError
from models.patient_record import PatientRecord

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = (
    "name",
    "age",
    "parent_name",
    "op_number",
    "contact_details",
    "treatment",
    "notes",
    "image_url",
)


class PatientRecordStore:
    """Persistence operations for PatientRecord."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, error: SQLAlchemyError) -> StoreError:
        logger.exception(f"Failed to {action}: {error}")
        self.db.rollback()
        return StoreError(f"Failed to {action}")

    def insert(self, fields: Dict[str, Any]) -> PatientRecord:
        """Insert a record; the store assigns id, created_at and updated_at."""
        record = PatientRecord(**{key: fields.get(key) for key in WRITABLE_FIELDS})
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("create patient record", e)
        return record

    def update(self, record_id: int, fields: Dict[str, Any]) -> Optional[PatientRecord]:
        """Apply fields to an existing record. Keys not in fields are left alone."""
        unknown = set(fields) - set(WRITABLE_FIELDS)
        if unknown:
            raise KeyError(f"Fields are not writable: {sorted(unknown)}")
        try:
            record = self.db.get(PatientRecord, record_id)
            if record is None:
                return None
            for key, value in fields.items():
                setattr(record, key, value)
            # Every successful update bumps updated_at, even if no value changed
            flag_modified(record, "updated_at")
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail(f"update patient record {record_id}", e)
        return record

    def delete(self, record_id: int) -> Optional[PatientRecord]:
        """Delete a record and return the detached row as it was."""
        try:
            record = self.db.get(PatientRecord, record_id)
            if record is None:
                return None
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail(f"delete patient record {record_id}", e)
        return record

    def get_by_id(self, record_id: int) -> Optional[PatientRecord]:
        try:
            return self.db.get(PatientRecord, record_id)
        except SQLAlchemyError as e:
            raise self._fail(f"fetch patient record {record_id}", e)

    def get_all(self) -> List[PatientRecord]:
        """All records, newest first (id breaks created_at ties)."""
        try:
            return list(self.db.scalars(
                select(PatientRecord).order_by(desc(PatientRecord.created_at), desc(PatientRecord.id))
            ).all())
        except SQLAlchemyError as e:
            raise self._fail("fetch patient records", e)

    def count_image_references(self, image_url: str, exclude_id: Optional[int] = None) -> int:
        """Number of records whose image_url equals image_url."""
        query = select(func.count()).select_from(PatientRecord).where(PatientRecord.image_url == image_url)
        if exclude_id is not None:
            query = query.where(PatientRecord.id != exclude_id)
        try:
            return int(self.db.scalar(query) or 0)
        except SQLAlchemyError as e:
            raise self._fail("count image references", e)
