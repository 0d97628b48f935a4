"""Admin schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from clipvault.core.enums import RoleEnum
from clipvault.modules.identity.schemas import UserRead
from clipvault.modules.submissions.schemas import SubmissionRead

BALANCE_OVERWRITE_LIMIT = Decimal("100000")


class UserAdminUpdate(BaseModel):
    """Partial user edit issued by staff."""

    role: RoleEnum | None = None
    is_banned: bool | None = None
    balance: Decimal | None = Field(
        default=None,
        ge=-BALANCE_OVERWRITE_LIMIT,
        le=BALANCE_OVERWRITE_LIMIT,
    )

    @model_validator(mode="after")
    def require_change(self) -> UserAdminUpdate:
        if self.role is None and self.is_banned is None and self.balance is None:
            raise ValueError("At least one of role, is_banned or balance is required")
        return self


class AdminUserRead(UserRead):
    """User row in the admin listing."""

    submission_count: int = 0
    payout_count: int = 0


class CategoryCount(BaseModel):
    category: str
    count: int


class DashboardStatsRead(BaseModel):
    """Moderation dashboard snapshot."""

    total_users: int
    total_submissions: int
    pending_submissions: int
    approved_submissions: int
    rejected_submissions: int
    today_submissions: int
    total_payouts: Decimal
    submissions_by_category: list[CategoryCount]
    recent_submissions: list[SubmissionRead]


class SettingUpdate(BaseModel):
    value: str = Field(max_length=10_000)


class SettingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: str
    updated_at: datetime
