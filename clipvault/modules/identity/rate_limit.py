"""Rate-limit dependencies for identity endpoints."""

from __future__ import annotations

from fastapi import Request

from clipvault.core.config import get_settings
from clipvault.core.rate_limit import enforce_rate_limit, get_rate_limiter
from clipvault.shared.request_context import resolve_client_ip, trusted_proxy_ips


async def enforce_auth_rate_limit(request: Request) -> None:
    """Limit OAuth login attempts per client IP."""
    settings = get_settings()
    client_ip = resolve_client_ip(
        request,
        trusted_proxies=trusted_proxy_ips(settings.rate_limit_trusted_proxy_ips),
    )
    await enforce_rate_limit(
        get_rate_limiter(),
        f"identity:auth:{client_ip}",
        max_requests=settings.auth_rate_limit_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
        message="Too many authentication attempts.",
    )
