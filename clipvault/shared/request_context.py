"""Requester metadata captured for audit entries and rate-limit keys."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from fastapi import Request

from clipvault.core.config import get_settings

_USER_AGENT_MAX_LENGTH = 512


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Who called, from where."""

    ip_address: str | None = None
    user_agent: str | None = None


def trusted_proxy_ips(raw_value: object) -> set[str]:
    if raw_value is None:
        return set()
    if isinstance(raw_value, str):
        values: Iterable[object] = raw_value.split(",")
    elif isinstance(raw_value, tuple | list | set | frozenset):
        values = raw_value
    else:
        return set()

    return {str(value).strip() for value in values if str(value).strip()}


def resolve_client_ip(request: Request, *, trusted_proxies: set[str]) -> str:
    """Return peer address, or the first forwarded hop when the peer is a trusted proxy."""
    client_ip = "unknown"
    if request.client and request.client.host:
        client_ip = request.client.host

    forwarded_for = request.headers.get("x-forwarded-for")
    if not forwarded_for:
        return client_ip
    if client_ip not in trusted_proxies:
        return client_ip

    forwarded_client = forwarded_for.split(",")[0].strip()
    return forwarded_client or client_ip


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency building audit context from the incoming request."""
    settings = get_settings()
    ip_address = resolve_client_ip(
        request,
        trusted_proxies=trusted_proxy_ips(settings.rate_limit_trusted_proxy_ips),
    )
    user_agent = request.headers.get("user-agent")
    if user_agent is not None:
        user_agent = user_agent[:_USER_AGENT_MAX_LENGTH]
    return RequestContext(
        ip_address=None if ip_address == "unknown" else ip_address,
        user_agent=user_agent,
    )
