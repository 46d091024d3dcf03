"""Salesforce REST API client for opportunity lookups."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from app.clients.errors import ProviderAuthError, ProviderRequestError
from app.clients.google_auth import HTTP_TIMEOUT_SECONDS
from app.models import ProviderToken


def escape_soql_like(value: str) -> str:
    """Escape a user-supplied fragment for use inside a quoted SOQL LIKE pattern."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return escaped.replace("%", "\\%").replace("_", "\\_")


class SalesforceClient:
    """Run SOQL queries against the instance recorded on a connection."""

    def __init__(
        self,
        *,
        api_version: str = "v59.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_version = api_version
        self._transport = transport

    async def query(self, token: ProviderToken, soql: str) -> Dict[str, Any]:
        if not token.instance_url:
            raise ProviderRequestError("Salesforce connection has no instance URL.")

        url = f"{token.instance_url.rstrip('/')}/services/data/{self._api_version}/query"
        headers = {
            "Authorization": f"Bearer {token.access_token}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.get(url, params={"q": soql}, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderRequestError(f"Salesforce request failed: {exc}") from exc

        if response.status_code == 401:
            raise ProviderAuthError(response.text)
        if response.is_error:
            raise ProviderRequestError(_error_message(response))

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderRequestError("Salesforce returned a malformed response.") from exc

    async def search_open_opportunities(
        self, token: ProviderToken, search: str, *, limit: int = 20
    ) -> List[Dict[str, Any]]:
        """Open opportunities whose name or account name contains ``search``."""
        pattern = escape_soql_like(search)
        soql = (
            "SELECT Id, Name, Account.Name, Amount, CloseDate, StageName "
            "FROM Opportunity "
            f"WHERE (Name LIKE '%{pattern}%' OR Account.Name LIKE '%{pattern}%') "
            "AND IsClosed = false "
            "ORDER BY CloseDate ASC "
            f"LIMIT {int(limit)}"
        )
        payload = await self.query(token, soql)
        return payload.get("records", [])


def _error_message(response: httpx.Response) -> str:
    # Salesforce reports errors as a list of {"message", "errorCode"} objects.
    try:
        payload = response.json()
    except ValueError:
        return f"Salesforce query failed with status {response.status_code}"
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        return payload[0].get("message") or "Salesforce query failed"
    if isinstance(payload, dict):
        return payload.get("message") or "Salesforce query failed"
    return "Salesforce query failed"


__all__ = ["SalesforceClient", "escape_soql_like"]
