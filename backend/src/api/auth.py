# pyright: reportMissingTypeStubs=false
"""
Authentication API endpoints.

Single-administrator login: the configured username/password pair is
exchanged for a bearer token that the other endpoints require.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status

from auth.dependencies import SessionContext, require_authenticated
from core.exceptions import ValidationError
from services.jwt_service import jwt_service
from api.responses import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", summary="Log in as the clinic administrator", response_model=LoginResponse)
def login(body: LoginRequest) -> LoginResponse:
    if not body.username or not body.password:
        raise ValidationError("Please enter both username and password", field="username" if not body.username else "password")

    if not jwt_service.check_credentials(body.username, body.password):
        logger.warning(f"Failed login attempt for {body.username!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    logger.info(f"Admin {body.username} logged in")
    return LoginResponse(
        access_token=jwt_service.create_access_token(body.username),
        username=body.username,
    )


@router.get("/verify", summary="Verify access token")
def verify(session: SessionContext = Depends(require_authenticated)) -> dict[str, object]:
    return {"authenticated": session.is_authenticated, "username": session.username}
