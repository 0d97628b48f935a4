"""Submission repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.enums import FileTypeEnum, SubmissionStatusEnum
from clipvault.modules.identity.models import User
from clipvault.modules.submissions.models import Submission
from clipvault.modules.submissions.schemas import SubmissionFilters


class SubmissionRepository:
    """DB operations for submissions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def atomic(self):
        return self.session.begin_nested()

    async def commit(self) -> None:
        await self.session.commit()

    async def create_submission(
        self,
        *,
        user_id: UUID,
        blob_id: str,
        file_url: str,
        file_name: str,
        file_type: FileTypeEnum,
        file_size: int,
        category: str,
        description: str | None,
    ) -> Submission:
        submission = Submission(
            user_id=user_id,
            blob_id=blob_id,
            file_url=file_url,
            file_name=file_name,
            file_type=file_type,
            file_size=file_size,
            category=category,
            description=description,
            status=SubmissionStatusEnum.PENDING,
        )
        self.session.add(submission)
        await self.session.flush()
        return submission

    async def touch_last_submission(self, user: User, submitted_at: datetime) -> None:
        user.last_submission_at = submitted_at
        await self.session.flush()

    async def get_submission_by_id(self, submission_id: UUID) -> Submission | None:
        stmt = select(Submission).where(Submission.id == submission_id)
        return await self.session.scalar(stmt)

    @staticmethod
    def _apply_filters(stmt: Select, filters: SubmissionFilters) -> Select:
        if filters.user_id is not None:
            stmt = stmt.where(Submission.user_id == filters.user_id)
        if filters.status is not None:
            stmt = stmt.where(Submission.status == filters.status)
        if filters.category:
            stmt = stmt.where(Submission.category == filters.category)
        if filters.created_from is not None:
            stmt = stmt.where(Submission.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(Submission.created_at <= filters.created_to)
        return stmt

    async def list_submissions(
        self,
        filters: SubmissionFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[Submission], int]:
        base_stmt: Select[tuple[Submission]] = self._apply_filters(select(Submission), filters)
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Submission.created_at.desc(), Submission.id.desc()).limit(limit).offset(offset)
        items = list((await self.session.scalars(stmt)).all())
        return items, total

    async def transition_pending(
        self,
        submission_id: UUID,
        *,
        status: SubmissionStatusEnum,
        reject_reason: str | None,
        reviewer_id: UUID,
        reviewed_at: datetime,
    ) -> Submission | None:
        """Move a pending submission to ``status``; None when it is no longer pending."""
        stmt = (
            update(Submission)
            .where(
                Submission.id == submission_id,
                Submission.status == SubmissionStatusEnum.PENDING,
            )
            .values(
                status=status,
                reject_reason=reject_reason,
                reviewed_by=reviewer_id,
                reviewed_at=reviewed_at,
            )
            .returning(Submission)
            .execution_options(populate_existing=True)
        )
        return (await self.session.scalars(stmt)).one_or_none()

    async def bulk_transition(
        self,
        submission_ids: Sequence[UUID],
        *,
        status: SubmissionStatusEnum,
        reject_reason: str | None,
        reviewer_id: UUID,
        reviewed_at: datetime,
    ) -> int:
        stmt = (
            update(Submission)
            .where(
                Submission.id.in_(submission_ids),
                Submission.status == SubmissionStatusEnum.PENDING,
            )
            .values(
                status=status,
                reject_reason=reject_reason,
                reviewed_by=reviewer_id,
                reviewed_at=reviewed_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def delete_pending(self, submission_id: UUID, user_id: UUID) -> bool:
        stmt = (
            delete(Submission)
            .where(
                Submission.id == submission_id,
                Submission.user_id == user_id,
                Submission.status == SubmissionStatusEnum.PENDING,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

    async def most_used_categories(self, limit: int) -> list[str]:
        stmt = (
            select(Submission.category)
            .group_by(Submission.category)
            .order_by(func.count().desc(), Submission.category.asc())
            .limit(limit)
        )
        return list((await self.session.scalars(stmt)).all())
