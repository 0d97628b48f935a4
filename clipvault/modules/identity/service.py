"""Identity business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.config import get_settings
from clipvault.core.database import get_db_session
from clipvault.core.enums import RoleEnum
from clipvault.core.security import (
    ACCESS_TOKEN_TYPE,
    create_access_token,
    create_oauth_state,
    decode_token,
    oauth2_scheme,
    verify_oauth_state,
)
from clipvault.modules.identity.models import User
from clipvault.modules.identity.provider import IdentityProvider
from clipvault.modules.identity.repository import IdentityRepository
from clipvault.modules.identity.schemas import AuthorizationRedirect, TokenRead
from clipvault.shared.exceptions import (
    AuthenticationException,
    ExternalIdentityException,
    ForbiddenException,
)

settings = get_settings()
logger = logging.getLogger(__name__)

PLACEHOLDER_NICKNAME_PREFIX = "User_"
PLACEHOLDER_SUFFIX_LENGTH = 8


def placeholder_nickname(external_id: str) -> str:
    """Nickname for accounts whose provider reports no display name."""
    return f"{PLACEHOLDER_NICKNAME_PREFIX}{external_id[-PLACEHOLDER_SUFFIX_LENGTH:]}"


class IdentityService:
    """Identity domain service."""

    def __init__(
        self,
        repository: IdentityRepository,
        provider: IdentityProvider | None = None,
        admin_external_ids: tuple[str, ...] | None = None,
    ) -> None:
        self.repository = repository
        self.provider = provider
        self.admin_external_ids = frozenset(
            settings.admin_external_ids if admin_external_ids is None else admin_external_ids,
        )

    def _initial_role(self, external_id: str) -> RoleEnum:
        return RoleEnum.ADMIN if external_id in self.admin_external_ids else RoleEnum.USER

    async def resolve_identity(self, external_id: str | None, display_name: str | None) -> User:
        """Return the user for a provider account, creating it on first sight."""
        external_id = (external_id or "").strip()
        if not external_id:
            raise ExternalIdentityException("Identity provider account has no id")
        display_name = (display_name or "").strip() or None

        user = await self.repository.get_user_by_external_id(external_id)
        if user is None:
            role = self._initial_role(external_id)
            user = await self.repository.create_user(
                external_id=external_id,
                nickname=display_name or placeholder_nickname(external_id),
                role=role,
            )
            if user is not None:
                logger.info("New user registered: %s (%s)", user.nickname, user.role)
                return user
            # Lost the unique-key race to a concurrent first login.
            user = await self.repository.get_user_by_external_id(external_id)
            if user is None:
                raise ExternalIdentityException("Could not resolve identity")

        if display_name is not None and user.nickname != display_name:
            user = await self.repository.update_nickname(user, display_name)
        return user

    def begin_login(self) -> AuthorizationRedirect:
        """Start authorization-code flow."""
        if self.provider is None:
            raise ExternalIdentityException("Identity provider is not configured")
        state = create_oauth_state()
        return AuthorizationRedirect(
            authorization_url=self.provider.authorization_url(state),
            state=state,
        )

    async def complete_login(self, code: str, state: str) -> TokenRead:
        """Finish authorization-code flow and issue a bearer token."""
        if self.provider is None:
            raise ExternalIdentityException("Identity provider is not configured")
        verify_oauth_state(state)

        account = await self.provider.fetch_account(code)
        user = await self.resolve_identity(account.account_id, account.display_name)
        if user.is_banned:
            raise ForbiddenException("Your account has been banned")

        return TokenRead(access_token=create_access_token(subject=str(user.id), role=user.role.value))

    async def get_user_from_access_token(self, token: str) -> User:
        """Resolve user from access token."""
        payload = decode_token(token)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise AuthenticationException("Invalid access token")

        subject = payload.get("sub")
        if not subject:
            raise AuthenticationException("Token subject is missing")
        try:
            user_id = UUID(subject)
        except ValueError as exc:
            raise AuthenticationException("Token subject is malformed") from exc

        user = await self.repository.get_user_by_id(user_id)
        if user is None:
            raise AuthenticationException("User not found")
        if user.is_banned:
            raise ForbiddenException("Your account has been banned")
        return user


async def get_identity_service(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(
        IdentityRepository(session),
        provider=getattr(request.app.state, "identity_provider", None),
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolve currently authenticated user from bearer token."""
    return await service.get_user_from_access_token(token)
