"""Rate-limit dependencies for admin endpoints."""

from __future__ import annotations

from fastapi import Depends

from clipvault.core.config import get_settings
from clipvault.core.rate_limit import enforce_rate_limit, get_rate_limiter
from clipvault.modules.identity.models import User
from clipvault.modules.identity.service import get_current_user


async def enforce_admin_rate_limit(current_user: User = Depends(get_current_user)) -> None:
    """Throttle privileged write actions per staff account."""
    settings = get_settings()
    await enforce_rate_limit(
        get_rate_limiter(),
        f"admin:actions:{current_user.id}",
        max_requests=settings.admin_rate_limit_requests,
        window_seconds=settings.admin_rate_limit_window_seconds,
        message="Too many admin actions.",
    )
