"""Profile API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from clipvault.modules.identity.service import get_current_user
from clipvault.modules.ledger.schemas import PayoutRead
from clipvault.modules.ledger.service import LedgerService, get_ledger_service
from clipvault.modules.profile.schemas import ProfileDashboardRead, ProfileRead, ProfileStatsRead
from clipvault.modules.profile.service import ProfileService, get_profile_service
from clipvault.shared.pagination import Page, build_page, pagination_params

router = APIRouter(prefix="/profile", tags=["profile"])

get_payout_pagination = pagination_params(default_limit=20, max_limit=50)


@router.get("", response_model=ProfileRead)
async def get_profile(
    service: ProfileService = Depends(get_profile_service),
    current_user=Depends(get_current_user),
) -> ProfileRead:
    """Current user with submission and payout counts."""
    return await service.get_profile(current_user)


@router.get("/stats", response_model=ProfileStatsRead)
async def get_stats(
    service: ProfileService = Depends(get_profile_service),
    current_user=Depends(get_current_user),
) -> ProfileStatsRead:
    return await service.get_stats(current_user)


@router.get("/payouts", response_model=Page[PayoutRead])
async def list_payouts(
    pagination=Depends(get_payout_pagination),
    service: LedgerService = Depends(get_ledger_service),
    current_user=Depends(get_current_user),
) -> Page[PayoutRead]:
    """Payouts credited to current user, newest first."""
    items, total = await service.list_user_payouts(current_user, pagination.limit, pagination.offset)
    serialized = [PayoutRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/dashboard", response_model=ProfileDashboardRead)
async def get_dashboard(
    service: ProfileService = Depends(get_profile_service),
    current_user=Depends(get_current_user),
) -> ProfileDashboardRead:
    return await service.get_dashboard(current_user)
