"""Profile schemas."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel

from clipvault.modules.identity.schemas import UserRead
from clipvault.modules.ledger.schemas import PayoutRead
from clipvault.modules.submissions.schemas import SubmissionRead


class ProfileRead(UserRead):
    submission_count: int
    payout_count: int


class ProfileStatsRead(BaseModel):
    """Per-user submission and earnings summary."""

    total_submissions: int
    pending_submissions: int
    approved_submissions: int
    rejected_submissions: int
    payout_count: int
    total_earned: Decimal
    recent_submissions: list[SubmissionRead]


class ProfileDashboardRead(BaseModel):
    user: UserRead
    recent_submissions: list[SubmissionRead]
    recent_payouts: list[PayoutRead]
