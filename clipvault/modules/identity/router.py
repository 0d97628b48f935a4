"""Identity API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from clipvault.modules.identity.rate_limit import enforce_auth_rate_limit
from clipvault.modules.identity.schemas import TokenRead, UserRead
from clipvault.modules.identity.service import (
    IdentityService,
    get_current_user,
    get_identity_service,
)

router = APIRouter(prefix="/identity", tags=["identity"])


@router.get("/auth/epic", include_in_schema=False)
async def epic_login(
    service: IdentityService = Depends(get_identity_service),
) -> RedirectResponse:
    """Redirect browser to the Epic Games authorization page."""
    redirect = service.begin_login()
    return RedirectResponse(redirect.authorization_url)


@router.get(
    "/auth/epic/callback",
    response_model=TokenRead,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
async def epic_callback(
    code: str = Query(min_length=1),
    state: str = Query(min_length=1),
    service: IdentityService = Depends(get_identity_service),
) -> TokenRead:
    """Exchange authorization code for a ClipVault bearer token."""
    return await service.complete_login(code, state)


@router.get("/users/me", response_model=UserRead)
async def get_me(current_user=Depends(get_current_user)) -> UserRead:
    """Return profile of authenticated user."""
    return UserRead.model_validate(current_user)
