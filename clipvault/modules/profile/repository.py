"""Profile repository layer."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.enums import PayoutStatusEnum, SubmissionStatusEnum
from clipvault.modules.ledger.models import Payout
from clipvault.modules.submissions.models import Submission


class ProfileRepository:
    """Read-only aggregates over one user's own records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count_submissions_by_status(self, user_id: UUID) -> dict[SubmissionStatusEnum, int]:
        stmt = (
            select(Submission.status, func.count())
            .where(Submission.user_id == user_id)
            .group_by(Submission.status)
        )
        rows = (await self.session.execute(stmt)).all()
        return {status: int(count) for status, count in rows}

    async def payout_totals(self, user_id: UUID) -> tuple[int, Decimal]:
        stmt = select(func.count(Payout.id), func.coalesce(func.sum(Payout.amount), 0)).where(
            Payout.user_id == user_id,
            Payout.status == PayoutStatusEnum.COMPLETED,
        )
        count, amount = (await self.session.execute(stmt)).one()
        return int(count), Decimal(str(amount))

    async def recent_submissions(self, user_id: UUID, limit: int) -> list[Submission]:
        stmt = (
            select(Submission)
            .where(Submission.user_id == user_id)
            .order_by(Submission.created_at.desc())
            .limit(limit)
        )
        return list((await self.session.scalars(stmt)).all())

    async def recent_payouts(self, user_id: UUID, limit: int) -> list[Payout]:
        stmt = select(Payout).where(Payout.user_id == user_id).order_by(Payout.created_at.desc()).limit(limit)
        return list((await self.session.scalars(stmt)).all())
