"""Submission lifecycle business logic layer."""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import PurePath
from uuid import UUID, uuid4

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.config import get_settings
from clipvault.core.database import get_db_session
from clipvault.core.enums import (
    AdminActionEnum,
    FileTypeEnum,
    ReviewDecisionEnum,
    SubmissionStatusEnum,
)
from clipvault.core.metrics import SUBMISSIONS_CREATED_TOTAL, SUBMISSIONS_REVIEWED_TOTAL
from clipvault.core.storage import BlobStore, IncomingFile, discard_blob
from clipvault.modules.access.policy import AccessPolicy, Capability, access_policy
from clipvault.modules.audit.repository import AuditRepository
from clipvault.modules.audit.service import AuditService
from clipvault.modules.identity.models import User
from clipvault.modules.ledger.repository import LedgerRepository
from clipvault.modules.ledger.service import LedgerService
from clipvault.modules.submissions.models import Submission
from clipvault.modules.submissions.repository import SubmissionRepository
from clipvault.modules.submissions.schemas import (
    BulkReviewRequest,
    LimitsRead,
    ReviewRequest,
    SubmissionFilters,
)
from clipvault.shared.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from clipvault.shared.request_context import RequestContext
from clipvault.shared.utils import ensure_utc, to_money, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

CATEGORY_MIN_LENGTH = 2
CATEGORY_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
REJECT_REASON_MAX_LENGTH = 200
FILE_NAME_MAX_LENGTH = 255
POPULAR_CATEGORIES_LIMIT = 20
CATEGORIES_MAX = 30

DEFAULT_CATEGORIES = (
    "Victory Royale",
    "Epic Kill",
    "Funny Moment",
    "Clutch Play",
    "Bug/Glitch",
    "Creative Build",
    "Trick Shot",
    "Team Play",
    "Solo Win",
    "High Kill Game",
)


def _clean_file_name(raw_name: str | None) -> str:
    name = PurePath((raw_name or "").replace("\\", "/")).name.strip()
    return (name or "upload")[-FILE_NAME_MAX_LENGTH:]


def _blob_extension(file_name: str) -> str:
    suffix = PurePath(file_name).suffix.lower()
    if not suffix[1:].isalnum() or len(suffix) > 10:
        return ""
    return suffix


def _file_type_for(content_type: str) -> FileTypeEnum:
    return FileTypeEnum.IMAGE if content_type.startswith("image/") else FileTypeEnum.VIDEO


def _normalize_reject_reason(decision: ReviewDecisionEnum, reason: str | None) -> str | None:
    if decision is ReviewDecisionEnum.APPROVED:
        return None
    reason = (reason or "").strip()
    if not reason:
        raise ValidationException("Reject reason is required when rejecting")
    if len(reason) > REJECT_REASON_MAX_LENGTH:
        raise ValidationException(f"Reject reason must be at most {REJECT_REASON_MAX_LENGTH} characters")
    return reason


class SubmissionService:
    """Owns the pending -> approved | rejected lifecycle."""

    def __init__(
        self,
        repository: SubmissionRepository,
        ledger_service: LedgerService,
        audit_service: AuditService,
        blob_store: BlobStore,
        policy: AccessPolicy = access_policy,
    ) -> None:
        self.repository = repository
        self.ledger_service = ledger_service
        self.audit_service = audit_service
        self.blob_store = blob_store
        self.policy = policy

    async def create_submission(
        self,
        user: User,
        incoming: IncomingFile,
        category: str | None,
        description: str | None,
    ) -> Submission:
        """Validate, store the blob and queue the submission for review."""
        if user.is_banned:
            raise ForbiddenException("Your account has been banned")

        category = (category or "").strip()
        if not CATEGORY_MIN_LENGTH <= len(category) <= CATEGORY_MAX_LENGTH:
            raise ValidationException(
                f"Category must be {CATEGORY_MIN_LENGTH}-{CATEGORY_MAX_LENGTH} characters",
            )
        description = (description or "").strip() or None
        if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationException(
                f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
            )

        content_type = (incoming.content_type or "").split(";")[0].strip().lower()
        if content_type not in settings.allowed_mime_types:
            raise ValidationException(f"File type {content_type or 'unknown'} is not allowed")
        max_bytes = settings.max_file_size_bytes
        if incoming.declared_size is not None and incoming.declared_size > max_bytes:
            raise ValidationException(f"File size exceeds the limit of {max_bytes} bytes")

        file_name = _clean_file_name(incoming.filename)
        blob_id = f"{uuid4().hex}{_blob_extension(file_name)}"
        file_size = await self.blob_store.save(blob_id, incoming.stream, max_bytes=max_bytes)

        try:
            if file_size == 0:
                raise ValidationException("File is empty")
            async with self.repository.atomic():
                submission = await self.repository.create_submission(
                    user_id=user.id,
                    blob_id=blob_id,
                    file_url=self.blob_store.public_url(blob_id),
                    file_name=file_name,
                    file_type=_file_type_for(content_type),
                    file_size=file_size,
                    category=category,
                    description=description,
                )
                await self.repository.touch_last_submission(user, submission.created_at)
        except Exception:
            await discard_blob(self.blob_store, blob_id)
            raise

        SUBMISSIONS_CREATED_TOTAL.labels(file_type=submission.file_type.value).inc()
        logger.info("Submission %s created by %s (%s)", submission.id, user.id, submission.file_type.value)
        return submission

    async def review_submission(
        self,
        actor: User,
        submission_id: UUID,
        payload: ReviewRequest,
        context: RequestContext | None = None,
    ) -> Submission:
        """Approve or reject a pending submission, optionally crediting a bonus."""
        self.policy.ensure(actor, Capability.REVIEW_SUBMISSIONS)

        submission = await self.repository.get_submission_by_id(submission_id)
        if submission is None:
            raise NotFoundException("Submission not found")
        if submission.status != SubmissionStatusEnum.PENDING:
            raise InvalidStateException("Submission has already been reviewed")

        decision = payload.status
        reject_reason = _normalize_reject_reason(decision, payload.reject_reason)
        bonus = to_money(payload.bonus_amount or Decimal("0"))
        if bonus < 0:
            raise ValidationException("Bonus amount must not be negative")
        if bonus > to_money(settings.max_bonus_amount):
            raise ValidationException(f"Bonus amount must be at most {to_money(settings.max_bonus_amount)}")
        if bonus > 0 and decision is not ReviewDecisionEnum.APPROVED:
            raise ValidationException("Bonus can only be granted when approving")
        if bonus > 0:
            self.policy.ensure_can_modify_user(actor, submission.user_id)

        owner_id = submission.user_id
        async with self.repository.atomic():
            reviewed = await self.repository.transition_pending(
                submission_id,
                status=decision.status,
                reject_reason=reject_reason,
                reviewer_id=actor.id,
                reviewed_at=utc_now(),
            )
            if reviewed is None:
                raise InvalidStateException("Submission has already been reviewed")
            if bonus > 0:
                await self.ledger_service.credit(
                    owner_id,
                    bonus,
                    f"Bonus for submission {submission_id}",
                    actor,
                )

        SUBMISSIONS_REVIEWED_TOTAL.labels(decision=decision.value).inc()
        logger.info("Submission %s %s by %s", submission_id, decision.value, actor.id)
        await self.audit_service.record(
            actor,
            AdminActionEnum.REVIEW_SUBMISSION,
            {
                "submission_id": str(submission_id),
                "status": decision.value,
                "reject_reason": reject_reason,
                "bonus_amount": str(bonus) if bonus > 0 else None,
            },
            context,
        )
        return reviewed

    async def bulk_review(
        self,
        actor: User,
        payload: BulkReviewRequest,
        context: RequestContext | None = None,
    ) -> int:
        """Apply one decision to many submissions; non-pending ids are skipped."""
        self.policy.ensure(actor, Capability.REVIEW_SUBMISSIONS)

        decision = payload.status
        reject_reason = _normalize_reject_reason(decision, payload.reject_reason)
        submission_ids = list(dict.fromkeys(payload.submission_ids))
        if not submission_ids:
            raise ValidationException("At least one submission id is required")
        if len(submission_ids) > settings.bulk_review_max_items:
            raise ValidationException(
                f"At most {settings.bulk_review_max_items} submissions can be reviewed at once",
            )

        async with self.repository.atomic():
            updated = await self.repository.bulk_transition(
                submission_ids,
                status=decision.status,
                reject_reason=reject_reason,
                reviewer_id=actor.id,
                reviewed_at=utc_now(),
            )

        if updated:
            SUBMISSIONS_REVIEWED_TOTAL.labels(decision=decision.value).inc(updated)
        logger.info("Bulk review by %s: %s of %s submissions %s", actor.id, updated, len(submission_ids), decision.value)
        await self.audit_service.record(
            actor,
            AdminActionEnum.BULK_REVIEW_SUBMISSIONS,
            {
                "submission_ids": [str(item) for item in submission_ids],
                "status": decision.value,
                "reject_reason": reject_reason,
                "updated": updated,
            },
            context,
        )
        return updated

    async def delete_submission(self, user: User, submission_id: UUID) -> None:
        """Withdraw own pending submission and drop its blob."""
        submission = await self.repository.get_submission_by_id(submission_id)
        if submission is None or submission.user_id != user.id:
            raise NotFoundException("Submission not found")
        if submission.status != SubmissionStatusEnum.PENDING:
            raise InvalidStateException("Only pending submissions can be deleted")

        blob_id = submission.blob_id
        deleted = await self.repository.delete_pending(submission_id, user.id)
        if not deleted:
            raise InvalidStateException("Only pending submissions can be deleted")

        # The row must be gone for good before the blob is removed.
        await self.repository.commit()
        await discard_blob(self.blob_store, blob_id)
        logger.info("Submission %s deleted by owner %s", submission_id, user.id)

    @staticmethod
    def _normalize_date_range(filters: SubmissionFilters) -> SubmissionFilters:
        """Read naive bounds as UTC and reject inverted ranges."""
        created_from = ensure_utc(filters.created_from) if filters.created_from else None
        created_to = ensure_utc(filters.created_to) if filters.created_to else None
        if created_from and created_to and created_from > created_to:
            raise ValidationException("created_from must not be after created_to")
        return filters.model_copy(update={"created_from": created_from, "created_to": created_to})

    async def list_user_submissions(
        self,
        user: User,
        filters: SubmissionFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[Submission], int]:
        own = self._normalize_date_range(filters).model_copy(update={"user_id": user.id})
        return await self.repository.list_submissions(own, limit=limit, offset=offset)

    async def list_submissions(
        self,
        actor: User,
        filters: SubmissionFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[Submission], int]:
        """Moderation queue across all users."""
        self.policy.ensure(actor, Capability.VIEW_DASHBOARD)
        filters = self._normalize_date_range(filters)
        return await self.repository.list_submissions(filters, limit=limit, offset=offset)

    async def get_user_submission(self, user: User, submission_id: UUID) -> Submission:
        submission = await self.repository.get_submission_by_id(submission_id)
        if submission is None or submission.user_id != user.id:
            raise NotFoundException("Submission not found")
        return submission

    async def get_categories(self) -> list[str]:
        """Most used categories first, then built-in defaults."""
        popular = await self.repository.most_used_categories(POPULAR_CATEGORIES_LIMIT)
        merged = list(dict.fromkeys([*popular, *DEFAULT_CATEGORIES]))
        return merged[:CATEGORIES_MAX]

    @staticmethod
    def get_limits() -> LimitsRead:
        return LimitsRead(
            max_file_size_bytes=settings.max_file_size_bytes,
            daily_submission_limit=settings.submission_rate_limit_per_day,
            allowed_mime_types=list(settings.allowed_mime_types),
        )


def build_submission_service(session: AsyncSession, blob_store: BlobStore) -> SubmissionService:
    audit_service = AuditService(AuditRepository(session))
    return SubmissionService(
        SubmissionRepository(session),
        LedgerService(LedgerRepository(session), audit_service),
        audit_service,
        blob_store,
    )


async def get_submission_service(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> SubmissionService:
    """Dependency provider for submission service."""
    return build_submission_service(session, request.app.state.blob_store)
