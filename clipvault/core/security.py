"""Security utilities for signed session and OAuth state tokens."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from fastapi.security import OAuth2AuthorizationCodeBearer
from jose import JWTError, jwt

from clipvault.core.config import get_settings
from clipvault.shared.exceptions import AuthenticationException

settings = get_settings()

oauth2_scheme = OAuth2AuthorizationCodeBearer(
    authorizationUrl=f"{settings.api_prefix}/identity/auth/epic",
    tokenUrl=f"{settings.api_prefix}/identity/auth/epic/callback",
)

ACCESS_TOKEN_TYPE = "access"
OAUTH_STATE_TOKEN_TYPE = "oauth_state"


def _create_token(subject: str, expires_delta: timedelta, token_type: str, **claims: Any) -> str:
    """Create signed JWT token."""
    payload: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "exp": datetime.now(UTC) + expires_delta,
    }
    payload.update(claims)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(subject: str, **claims: Any) -> str:
    """Create bearer access token for an internal user id."""
    expires = timedelta(minutes=settings.access_token_expire_minutes)
    return _create_token(subject=subject, expires_delta=expires, token_type=ACCESS_TOKEN_TYPE, **claims)


def create_oauth_state() -> str:
    """Create short-lived signed state value for the authorization-code round trip."""
    expires = timedelta(minutes=settings.oauth_state_expire_minutes)
    return _create_token(subject=uuid4().hex, expires_delta=expires, token_type=OAUTH_STATE_TOKEN_TYPE)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate JWT token."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationException("Invalid token") from exc


def verify_oauth_state(state: str) -> None:
    """Reject forged or expired OAuth state values."""
    payload = decode_token(state)
    if payload.get("type") != OAUTH_STATE_TOKEN_TYPE:
        raise AuthenticationException("Invalid OAuth state")
