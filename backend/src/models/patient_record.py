"""
Patient record model.

A patient record is the single entity managed by the clinic. It may reference
one photo in the blob store through image_url.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Integer, String, Text, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class PatientRecord(Base):
    """
    Patient record entity.

    Timestamps are maintained by the Base event listeners: created_at is set
    once on insert, updated_at on insert and on every update.
    """

    __tablename__ = "patient_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Store-assigned identifier. Never reused, even after deletion."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    age: Mapped[int] = mapped_column(Integer, nullable=False)
    """Age in years. 0-18 is the expected range but is not enforced."""

    parent_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    op_number: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Clinic-internal outpatient reference code."""

    contact_details: Mapped[str] = mapped_column(Text, nullable=False)
    """Free-form phone/email text."""

    treatment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    """Public URL of the patient photo in the blob store, if any."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_patient_records_created_at", "created_at"),
        Index("idx_patient_records_image_url", "image_url"),
        # Keep ids monotonic on SQLite; PostgreSQL sequences already are
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"PatientRecord(id={self.id}, name={self.name!r})"
