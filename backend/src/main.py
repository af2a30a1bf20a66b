# pyright: reportMissingTypeStubs=false
"""
Patient Records Backend API

A FastAPI application for a small clinic's patient records: create, list,
search, view, edit and delete patients, each optionally with a photo.

Features:
- Patient record lifecycle kept consistent with stored photos
- S3 or local filesystem photo storage
- SQLAlchemy ORM (SQLite by default, PostgreSQL supported)
"""

import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api import auth, patient_records, uploads
from api.responses import ErrorResponse
from core.config import UPLOAD_DIR, is_s3_configured
from core.constants import CORS_ORIGINS
from core.database import create_tables
from core.exceptions import NotFoundError, PatientRecordError, ValidationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("🚀 Starting Patient Records Backend API")

    create_tables()
    if not is_s3_configured():
        os.makedirs(UPLOAD_DIR, exist_ok=True)

    yield

    logger.info("🛑 Shutting down Patient Records Backend API")


app = FastAPI(
    title="Patient Records Backend",
    description="Patient records with photos for a small clinic",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(
    auth.router,
    prefix="/api/auth",
    tags=["authentication"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
    },
)
app.include_router(
    patient_records.router,
    prefix="/api",
    tags=["patients"],
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        401: {"description": "Unauthorized"},
        404: {"model": ErrorResponse, "description": "Patient record not found"},
        405: {"description": "Method not allowed"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
app.include_router(
    uploads.router,
    prefix="/api",
    tags=["uploads"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad request"},
        401: {"description": "Unauthorized"},
        500: {"model": ErrorResponse, "description": "Upload failed"},
    },
)

# Locally stored photos; with S3 configured the bucket serves them instead
if not is_s3_configured():
    app.mount("/static/uploads", StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "Patient Records Backend API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


# Exception handlers
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Missing or invalid field."""
    logger.warning(f"ValidationError: {exc.message} (field={exc.field})")
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "type": "validation_error", "field": exc.field},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request body or parameters, reported like field validation errors."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or None
    message = f"Invalid value for {field}" if field else "Invalid request"
    logger.warning(f"RequestValidationError: {errors}")
    return JSONResponse(
        status_code=400,
        content={"detail": message, "type": "validation_error", "field": field},
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """No record at the given id."""
    return JSONResponse(
        status_code=404,
        content={"detail": exc.message, "type": "not_found"},
    )


@app.exception_handler(PatientRecordError)
async def patient_record_error_handler(request: Request, exc: PatientRecordError):
    """Upload and store failures: generic message, details only in the log."""
    logger.error(f"{type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )
