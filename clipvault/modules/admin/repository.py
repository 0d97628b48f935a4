"""Admin repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.enums import PayoutStatusEnum, RoleEnum, SubmissionStatusEnum
from clipvault.modules.admin.models import SystemSetting
from clipvault.modules.identity.models import User
from clipvault.modules.ledger.models import Payout
from clipvault.modules.submissions.models import Submission


class AdminRepository:
    """DB operations for admin domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        stmt = select(User).where(User.id == user_id)
        return await self.session.scalar(stmt)

    async def update_user(self, user: User, changes: dict) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        await self.session.flush()
        return user

    async def list_users(
        self,
        *,
        role: RoleEnum | None,
        is_banned: bool | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[tuple[User, int, int]], int]:
        base_stmt: Select[tuple[User]] = select(User)
        if role is not None:
            base_stmt = base_stmt.where(User.role == role)
        if is_banned is not None:
            base_stmt = base_stmt.where(User.is_banned == is_banned)
        if search:
            base_stmt = base_stmt.where(
                or_(
                    func.lower(User.nickname).contains(search.lower(), autoescape=True),
                    User.external_id == search,
                ),
            )

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        submission_count = (
            select(func.count(Submission.id))
            .where(Submission.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        payout_count = (
            select(func.count(Payout.id))
            .where(Payout.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        stmt = (
            base_stmt.add_columns(submission_count, payout_count)
            .order_by(User.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await self.session.execute(stmt)).all()
        return [(user, int(submissions), int(payouts)) for user, submissions, payouts in rows], total

    async def count_users(self) -> int:
        return int((await self.session.scalar(select(func.count(User.id)))) or 0)

    async def count_submissions_by_status(self) -> dict[SubmissionStatusEnum, int]:
        stmt = select(Submission.status, func.count()).group_by(Submission.status)
        rows = (await self.session.execute(stmt)).all()
        return {status: int(count) for status, count in rows}

    async def count_submissions_since(self, since: datetime) -> int:
        stmt = select(func.count(Submission.id)).where(Submission.created_at >= since)
        return int((await self.session.scalar(stmt)) or 0)

    async def sum_completed_payouts(self) -> Decimal:
        stmt = select(func.coalesce(func.sum(Payout.amount), 0)).where(
            Payout.status == PayoutStatusEnum.COMPLETED,
        )
        return Decimal(str((await self.session.scalar(stmt)) or 0))

    async def count_submissions_by_category(self) -> list[tuple[str, int]]:
        stmt = (
            select(Submission.category, func.count())
            .group_by(Submission.category)
            .order_by(func.count().desc(), Submission.category.asc())
        )
        rows = (await self.session.execute(stmt)).all()
        return [(category, int(count)) for category, count in rows]

    async def list_recent_submissions(self, limit: int) -> list[Submission]:
        stmt = select(Submission).order_by(Submission.created_at.desc()).limit(limit)
        return list((await self.session.scalars(stmt)).all())

    async def get_setting(self, key: str) -> SystemSetting | None:
        stmt = select(SystemSetting).where(SystemSetting.key == key)
        return await self.session.scalar(stmt)

    async def upsert_setting(self, key: str, value: str) -> SystemSetting:
        setting = await self.get_setting(key)
        if setting is None:
            setting = SystemSetting(key=key, value=value)
            self.session.add(setting)
        else:
            setting.value = value
        await self.session.flush()
        return setting
