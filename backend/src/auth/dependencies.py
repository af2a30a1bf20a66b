# pyright: reportMissingTypeStubs=false
"""
Authentication dependencies for FastAPI.

Every protected handler receives an explicit SessionContext built from the
request's bearer token. There is no process-wide "logged in" flag.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from services.jwt_service import jwt_service, TokenPayload

logger = logging.getLogger(__name__)


class SessionContext:
    """Per-request session state for the admin user."""

    def __init__(self, username: Optional[str], is_authenticated: bool):
        self.username = username
        self.is_authenticated = is_authenticated

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls(username=None, is_authenticated=False)

    def __repr__(self) -> str:
        return f"SessionContext(username={self.username!r}, is_authenticated={self.is_authenticated})"


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenPayload]:
    """Extract and validate JWT token payload."""
    if not credentials:
        return None
    return jwt_service.verify_token(credentials.credentials)


def get_session_context(
    payload: Optional[TokenPayload] = Depends(get_token_payload)
) -> SessionContext:
    """Session context for the request; anonymous when no valid token is sent."""
    if not payload:
        return SessionContext.anonymous()
    return SessionContext(username=payload.sub, is_authenticated=True)


def require_authenticated(
    session: SessionContext = Depends(get_session_context)
) -> SessionContext:
    """Require a logged-in admin session."""
    if not session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session
