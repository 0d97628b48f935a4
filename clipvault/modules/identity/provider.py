"""OAuth identity provider client (Epic Games accounts)."""

from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import urlencode

import httpx

from clipvault.core.config import Settings
from clipvault.modules.identity.schemas import ExternalAccount
from clipvault.shared.exceptions import ExternalIdentityException

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """External identity provider reachable over HTTPS."""

    def authorization_url(self, state: str) -> str:
        """Build the URL the browser is redirected to."""

    async def fetch_account(self, code: str) -> ExternalAccount:
        """Exchange authorization code and return the provider account."""


class EpicIdentityProvider:
    """Authorization-code flow against Epic Games account services."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport

    def authorization_url(self, state: str) -> str:
        query = urlencode(
            {
                "client_id": self.settings.epic_client_id,
                "redirect_uri": self.settings.epic_redirect_uri,
                "response_type": "code",
                "scope": self.settings.epic_scope,
                "state": state,
            },
        )
        return f"{self.settings.epic_authorization_url}?{query}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.identity_provider_timeout_seconds,
            transport=self._transport,
        )

    async def _json(self, response: httpx.Response, what: str) -> Any:
        if response.status_code >= 400:
            logger.warning(
                "Identity provider rejected %s request: %s %s",
                what,
                response.status_code,
                response.text[:200],
            )
            raise ExternalIdentityException(f"Identity provider rejected {what} request")
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalIdentityException(f"Identity provider sent malformed {what} payload") from exc

    async def fetch_account(self, code: str) -> ExternalAccount:
        try:
            async with self._client() as client:
                token_response = await client.post(
                    self.settings.epic_token_url,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self.settings.epic_redirect_uri,
                    },
                    auth=(self.settings.epic_client_id, self.settings.epic_client_secret),
                )
                token_payload = await self._json(token_response, "token")
                access_token = token_payload.get("access_token") if isinstance(token_payload, dict) else None
                if not access_token:
                    raise ExternalIdentityException("Identity provider returned no access token")

                params = {}
                if token_payload.get("account_id"):
                    params["accountId"] = token_payload["account_id"]
                accounts_response = await client.get(
                    self.settings.epic_accounts_url,
                    params=params,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                accounts_payload = await self._json(accounts_response, "account")
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            raise ExternalIdentityException("Identity provider is unavailable") from exc

        return parse_account_payload(accounts_payload)


def parse_account_payload(payload: Any) -> ExternalAccount:
    """Extract the first account from an accounts endpoint response."""
    account = payload[0] if isinstance(payload, list) and payload else None
    if not isinstance(account, dict):
        raise ExternalIdentityException("No account data received from identity provider")

    account_id = str(account.get("accountId") or "").strip()
    if not account_id:
        raise ExternalIdentityException("Identity provider account has no id")

    display_name = account.get("displayName")
    return ExternalAccount(
        account_id=account_id,
        display_name=str(display_name).strip() if display_name else None,
    )
