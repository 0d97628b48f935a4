"""Rate-limit dependencies for submission uploads."""

from __future__ import annotations

from fastapi import Depends

from clipvault.core.config import get_settings
from clipvault.core.rate_limit import enforce_rate_limit, get_rate_limiter
from clipvault.modules.access.policy import Capability, access_policy
from clipvault.modules.identity.models import User
from clipvault.modules.identity.service import get_current_user


async def enforce_submission_rate_limit(current_user: User = Depends(get_current_user)) -> None:
    """Daily upload quota per user; staff are exempt."""
    if access_policy.can(current_user, Capability.REVIEW_SUBMISSIONS):
        return
    settings = get_settings()
    await enforce_rate_limit(
        get_rate_limiter(),
        f"submissions:create:{current_user.id}",
        max_requests=settings.submission_rate_limit_per_day,
        window_seconds=settings.submission_rate_limit_window_seconds,
        message="Daily submission limit reached.",
    )
