"""
Tests for authentication dependencies.
"""

import pytest
from unittest.mock import patch
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from auth.dependencies import (
    SessionContext, get_token_payload, get_session_context, require_authenticated
)
from services.jwt_service import TokenPayload


class TestSessionContext:
    """Test SessionContext class functionality."""

    def test_anonymous(self):
        session = SessionContext.anonymous()
        assert session.username is None
        assert session.is_authenticated is False

    def test_repr(self):
        assert "admin" in repr(SessionContext(username="admin", is_authenticated=True))


class TestGetTokenPayload:
    """Test get_token_payload dependency."""

    @patch('auth.dependencies.jwt_service')
    def test_valid_token(self, mock_jwt_service):
        """Test extracting payload from valid token."""
        payload = TokenPayload(sub="admin", iat=1, exp=2)
        mock_jwt_service.verify_token.return_value = payload
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="token")

        assert get_token_payload(credentials) is payload
        mock_jwt_service.verify_token.assert_called_once_with("token")

    def test_no_credentials(self):
        """Test missing Authorization header yields no payload."""
        assert get_token_payload(None) is None

    def test_invalid_token(self):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage")
        assert get_token_payload(credentials) is None


class TestSessionDependencies:
    """Test session construction and enforcement."""

    def test_session_from_payload(self):
        session = get_session_context(TokenPayload(sub="admin"))
        assert session.is_authenticated is True
        assert session.username == "admin"

    def test_anonymous_without_payload(self):
        session = get_session_context(None)
        assert session.is_authenticated is False

    def test_require_authenticated_passes_session_through(self):
        session = SessionContext(username="admin", is_authenticated=True)
        assert require_authenticated(session) is session

    def test_require_authenticated_rejects_anonymous(self):
        with pytest.raises(HTTPException) as exc_info:
            require_authenticated(SessionContext.anonymous())

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
