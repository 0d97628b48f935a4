"""Submission schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from clipvault.core.enums import FileTypeEnum, ReviewDecisionEnum, SubmissionStatusEnum
from clipvault.shared.utils import MONEY_MAX_DIGITS


class SubmissionRead(BaseModel):
    """Submission response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    file_url: str
    file_name: str
    file_type: FileTypeEnum
    file_size: int
    category: str
    description: str | None
    status: SubmissionStatusEnum
    reject_reason: str | None
    reviewed_by: UUID | None
    reviewed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ReviewRequest(BaseModel):
    """Moderator decision on one submission."""

    status: ReviewDecisionEnum
    reject_reason: str | None = Field(default=None, max_length=200)
    bonus_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=MONEY_MAX_DIGITS)


class BulkReviewRequest(BaseModel):
    submission_ids: list[UUID] = Field(min_length=1)
    status: ReviewDecisionEnum
    reject_reason: str | None = Field(default=None, max_length=200)


class BulkReviewResult(BaseModel):
    updated: int


class SubmissionFilters(BaseModel):
    """Listing filters shared by the owner view and the moderation queue."""

    user_id: UUID | None = None
    status: SubmissionStatusEnum | None = None
    category: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class CategoriesRead(BaseModel):
    categories: list[str]


class LimitsRead(BaseModel):
    """Upload constraints advertised to clients."""

    max_file_size_bytes: int
    daily_submission_limit: int
    allowed_mime_types: list[str]
