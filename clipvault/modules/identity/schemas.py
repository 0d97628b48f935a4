"""Identity schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from clipvault.core.enums import RoleEnum


class ExternalAccount(BaseModel):
    """Account as reported by the identity provider."""

    account_id: str
    display_name: str | None = None


class AuthorizationRedirect(BaseModel):
    """Where to send the browser to start the OAuth flow."""

    authorization_url: str
    state: str


class TokenRead(BaseModel):
    """Bearer token issued after a successful OAuth callback."""

    access_token: str
    token_type: str = "bearer"


class UserRead(BaseModel):
    """User output schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    external_id: str
    nickname: str
    balance: Decimal
    role: RoleEnum
    is_banned: bool
    last_submission_at: datetime | None
    created_at: datetime
    updated_at: datetime
