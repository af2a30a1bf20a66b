"""
Test configuration and shared fixtures for the Patient Records test suite.

Uses an in-memory SQLite database per test and a local blob store under the
test's tmp_path, so every test starts from an empty store with no images.
"""

import base64
import os
import pytest
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base

# Import models so they're registered on Base.metadata before create_all
from models.patient_record import PatientRecord  # noqa: F401
from services.jwt_service import jwt_service
from services.patient_image_service import ImageUpload, PatientImageService
from services.patient_record_service import PatientRecordFields, PatientRecordService
from services.patient_record_store import PatientRecordStore
from utils.file_storage import LocalBlobStore


# Smallest valid PNG header plus a few bytes; content is never decoded
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture(scope="function")
def db_engine():
    """
    Create a fresh in-memory database for a test.

    StaticPool keeps the single connection alive so the schema survives
    between sessions, and check_same_thread lets TestClient's worker
    threads share it.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session configured like the application's SessionLocal."""
    TestSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = TestSession()

    yield session

    session.close()


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    """Local blob store rooted in the test's temporary directory."""
    return LocalBlobStore(root_dir=str(tmp_path / "uploads"), base_url="http://testserver")


@pytest.fixture
def image_service(blob_store: LocalBlobStore) -> PatientImageService:
    return PatientImageService(blob_store)


@pytest.fixture
def record_store(db_session: Session) -> PatientRecordStore:
    return PatientRecordStore(db_session)


@pytest.fixture
def record_service(record_store: PatientRecordStore, image_service: PatientImageService) -> PatientRecordService:
    return PatientRecordService(record_store, image_service)


@pytest.fixture
def sample_fields() -> PatientRecordFields:
    """Valid fields for a patient record."""
    return PatientRecordFields(
        name="Asha Rao",
        age=7,
        contact_details="+91 98765 43210",
        parent_name="Meera Rao",
        op_number="OP-1042",
        treatment="Orthodontic review",
        notes="Prefers morning visits",
    )


@pytest.fixture
def sample_image() -> ImageUpload:
    return ImageUpload(data=PNG_BYTES, filename="photo.png", content_type="image/png")


@pytest.fixture
def sample_image_b64() -> str:
    """PNG_BYTES as a data URI, the way the browser sends it."""
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def auth_headers() -> dict:
    """Authorization header for the admin session."""
    token = jwt_service.create_access_token("admin")
    return {"Authorization": f"Bearer {token}"}


def stored_object_names(blob_store: LocalBlobStore) -> list:
    """Names of every object currently in a local blob store."""
    if not os.path.isdir(blob_store.image_dir):
        return []
    return sorted(os.listdir(blob_store.image_dir))
