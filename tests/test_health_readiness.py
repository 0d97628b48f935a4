from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import HTTPException

import clipvault.main as main_module


def _request_with_state(**state) -> SimpleNamespace:
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(**state)))


@pytest.mark.asyncio
async def test_readiness_check_returns_ready_when_database_is_available(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seen = []

    async def _ready(session_factory) -> bool:
        seen.append(session_factory)
        return True

    monkeypatch.setattr(main_module, "_is_database_ready", _ready)

    response = await main_module.readiness_check(_request_with_state(session_factory="factory"))

    assert response["status"] == "ready"
    assert response["database"] == "ok"
    assert "timestamp" in response
    assert seen == ["factory"]


@pytest.mark.asyncio
async def test_readiness_check_returns_503_when_database_is_unavailable(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _not_ready(_session_factory) -> bool:
        return False

    monkeypatch.setattr(main_module, "_is_database_ready", _not_ready)

    with pytest.raises(HTTPException) as exc:
        await main_module.readiness_check(_request_with_state(session_factory="factory"))
    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_readiness_is_false_before_startup() -> None:
    assert await main_module._is_database_ready(None) is False

    with pytest.raises(HTTPException) as exc:
        await main_module.readiness_check(_request_with_state())
    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_healthcheck_is_static() -> None:
    assert await main_module.healthcheck() == {"status": "ok"}
