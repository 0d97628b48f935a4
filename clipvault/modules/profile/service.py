"""Profile business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.database import get_db_session
from clipvault.core.enums import SubmissionStatusEnum
from clipvault.modules.identity.models import User
from clipvault.modules.identity.schemas import UserRead
from clipvault.modules.ledger.schemas import PayoutRead
from clipvault.modules.profile.repository import ProfileRepository
from clipvault.modules.profile.schemas import ProfileDashboardRead, ProfileRead, ProfileStatsRead
from clipvault.modules.submissions.schemas import SubmissionRead
from clipvault.shared.utils import to_money

STATS_RECENT_LIMIT = 5
DASHBOARD_RECENT_LIMIT = 3


class ProfileService:
    """Views of the signed-in user's own account."""

    def __init__(self, repository: ProfileRepository) -> None:
        self.repository = repository

    async def get_profile(self, user: User) -> ProfileRead:
        by_status = await self.repository.count_submissions_by_status(user.id)
        payout_count, _ = await self.repository.payout_totals(user.id)
        return ProfileRead(
            **UserRead.model_validate(user).model_dump(),
            submission_count=sum(by_status.values()),
            payout_count=payout_count,
        )

    async def get_stats(self, user: User) -> ProfileStatsRead:
        by_status = await self.repository.count_submissions_by_status(user.id)
        payout_count, total_earned = await self.repository.payout_totals(user.id)
        recent = await self.repository.recent_submissions(user.id, STATS_RECENT_LIMIT)
        return ProfileStatsRead(
            total_submissions=sum(by_status.values()),
            pending_submissions=by_status.get(SubmissionStatusEnum.PENDING, 0),
            approved_submissions=by_status.get(SubmissionStatusEnum.APPROVED, 0),
            rejected_submissions=by_status.get(SubmissionStatusEnum.REJECTED, 0),
            payout_count=payout_count,
            total_earned=to_money(total_earned),
            recent_submissions=[SubmissionRead.model_validate(item) for item in recent],
        )

    async def get_dashboard(self, user: User) -> ProfileDashboardRead:
        submissions = await self.repository.recent_submissions(user.id, DASHBOARD_RECENT_LIMIT)
        payouts = await self.repository.recent_payouts(user.id, DASHBOARD_RECENT_LIMIT)
        return ProfileDashboardRead(
            user=UserRead.model_validate(user),
            recent_submissions=[SubmissionRead.model_validate(item) for item in submissions],
            recent_payouts=[PayoutRead.model_validate(item) for item in payouts],
        )


async def get_profile_service(session: AsyncSession = Depends(get_db_session)) -> ProfileService:
    """Dependency provider for profile service."""
    return ProfileService(ProfileRepository(session))
