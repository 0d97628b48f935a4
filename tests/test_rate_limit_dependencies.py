from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest
from starlette.requests import Request

from clipvault.core.enums import RoleEnum
from clipvault.core.rate_limit import InMemorySlidingWindowRateLimiter
from clipvault.modules.admin import rate_limit as admin_rate_limit
from clipvault.modules.identity import rate_limit as identity_rate_limit
from clipvault.modules.submissions import rate_limit as submission_rate_limit
from clipvault.shared.exceptions import RateLimitException


def _make_request(
    *,
    client_ip: str = "10.0.0.1",
    x_forwarded_for: str | None = None,
) -> Request:
    headers: list[tuple[bytes, bytes]] = []
    if x_forwarded_for is not None:
        headers.append((b"x-forwarded-for", x_forwarded_for.encode()))

    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/v1/identity/auth/epic/login",
        "headers": headers,
        "client": (client_ip, 12345),
    }
    return Request(scope)


class CapturingLimiter:
    def __init__(self) -> None:
        self.calls: list[tuple[str, int, int]] = []

    async def acquire(
        self,
        key: str,
        *,
        max_requests: int,
        window_seconds: int,
    ) -> tuple[bool, int]:
        self.calls.append((key, max_requests, window_seconds))
        return True, 0


def _settings(**overrides) -> SimpleNamespace:
    values = {
        "rate_limit_trusted_proxy_ips": ("127.0.0.1",),
        "auth_rate_limit_window_seconds": 60,
        "auth_rate_limit_requests": 2,
        "submission_rate_limit_window_seconds": 86400,
        "submission_rate_limit_per_day": 2,
        "admin_rate_limit_window_seconds": 60,
        "admin_rate_limit_requests": 1,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.mark.asyncio
async def test_auth_rate_limit_blocks_after_threshold(monkeypatch: pytest.MonkeyPatch) -> None:
    limiter = InMemorySlidingWindowRateLimiter(now_provider=lambda: 1000.0)
    monkeypatch.setattr(identity_rate_limit, "get_rate_limiter", lambda: limiter)
    monkeypatch.setattr(identity_rate_limit, "get_settings", lambda: _settings())

    request = _make_request(client_ip="10.1.1.1")
    await identity_rate_limit.enforce_auth_rate_limit(request)
    await identity_rate_limit.enforce_auth_rate_limit(request)
    with pytest.raises(RateLimitException):
        await identity_rate_limit.enforce_auth_rate_limit(request)

    # Another address has its own window.
    await identity_rate_limit.enforce_auth_rate_limit(_make_request(client_ip="10.1.1.2"))


@pytest.mark.asyncio
async def test_auth_rate_limit_trusts_forwarded_header_only_from_proxy(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    limiter = CapturingLimiter()
    monkeypatch.setattr(identity_rate_limit, "get_rate_limiter", lambda: limiter)
    monkeypatch.setattr(
        identity_rate_limit,
        "get_settings",
        lambda: _settings(auth_rate_limit_requests=7, auth_rate_limit_window_seconds=120),
    )

    await identity_rate_limit.enforce_auth_rate_limit(
        _make_request(client_ip="127.0.0.1", x_forwarded_for="2.2.2.2, 3.3.3.3"),
    )
    await identity_rate_limit.enforce_auth_rate_limit(
        _make_request(client_ip="9.9.9.9", x_forwarded_for="2.2.2.2"),
    )

    assert limiter.calls == [
        ("identity:auth:2.2.2.2", 7, 120),
        ("identity:auth:9.9.9.9", 7, 120),
    ]


@pytest.mark.asyncio
async def test_submission_quota_is_per_user(monkeypatch: pytest.MonkeyPatch) -> None:
    limiter = InMemorySlidingWindowRateLimiter(now_provider=lambda: 5000.0)
    monkeypatch.setattr(submission_rate_limit, "get_rate_limiter", lambda: limiter)
    monkeypatch.setattr(submission_rate_limit, "get_settings", lambda: _settings())
    user = SimpleNamespace(id=uuid4(), role=RoleEnum.USER)

    await submission_rate_limit.enforce_submission_rate_limit(user)
    await submission_rate_limit.enforce_submission_rate_limit(user)
    with pytest.raises(RateLimitException) as exc:
        await submission_rate_limit.enforce_submission_rate_limit(user)

    assert exc.value.message.startswith("Daily submission limit reached.")
    await submission_rate_limit.enforce_submission_rate_limit(SimpleNamespace(id=uuid4(), role=RoleEnum.USER))


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [RoleEnum.MODERATOR, RoleEnum.ADMIN])
async def test_staff_are_exempt_from_submission_quota(
    monkeypatch: pytest.MonkeyPatch,
    role: RoleEnum,
) -> None:
    limiter = CapturingLimiter()
    monkeypatch.setattr(submission_rate_limit, "get_rate_limiter", lambda: limiter)
    monkeypatch.setattr(submission_rate_limit, "get_settings", lambda: _settings())

    for _ in range(5):
        await submission_rate_limit.enforce_submission_rate_limit(SimpleNamespace(id=uuid4(), role=role))

    assert limiter.calls == []


@pytest.mark.asyncio
async def test_admin_actions_are_throttled_per_account(monkeypatch: pytest.MonkeyPatch) -> None:
    limiter = InMemorySlidingWindowRateLimiter(now_provider=lambda: 10.0)
    monkeypatch.setattr(admin_rate_limit, "get_rate_limiter", lambda: limiter)
    monkeypatch.setattr(admin_rate_limit, "get_settings", lambda: _settings())
    admin = SimpleNamespace(id=uuid4(), role=RoleEnum.ADMIN)

    await admin_rate_limit.enforce_admin_rate_limit(admin)
    with pytest.raises(RateLimitException):
        await admin_rate_limit.enforce_admin_rate_limit(admin)
