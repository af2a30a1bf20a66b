"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255
MAX_NOTES_LENGTH = 5000
MAX_AGE_VALUE = 2**31 - 1  # INTEGER column on every supported database

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:3000",      # Next.js dev server
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Patient images
# Every stored image lives under this path segment, whatever the backend.
# URLs that do not contain it are not ours and are never deleted.
IMAGE_KEY_PREFIX = "patient-images"
IMAGE_CACHE_CONTROL = "max-age=3600"
IMAGE_TOKEN_BYTES = 6  # 12 hex characters in object names
