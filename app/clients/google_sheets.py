"""Google Sheets and Calendar client wrappers."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, TypeVar

import httplib2
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.clients.errors import ProviderAuthError, ProviderRequestError
from app.clients.google_auth import HTTP_TIMEOUT_SECONDS
from app.models import ProviderToken

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _build_service(api: str, version: str, token: ProviderToken) -> Any:
    # Access token only and no automatic refresh on 401: ProviderSession owns
    # refreshing, so the 401 has to surface as an HttpError.
    authorized_http = AuthorizedHttp(
        Credentials(token=token.access_token),
        http=httplib2.Http(timeout=HTTP_TIMEOUT_SECONDS),
        refresh_status_codes=(),
    )
    return build(api, version, http=authorized_http, cache_discovery=False)


async def _execute(func: Callable[[], T]) -> T:
    """Run a blocking discovery-client call and normalize its failures."""
    try:
        return await asyncio.to_thread(func)
    except HttpError as exc:
        if exc.resp.status == 401:
            raise ProviderAuthError(str(exc)) from exc
        raise ProviderRequestError(
            f"Google API request failed with status {exc.resp.status}: {exc}"
        ) from exc
    except RefreshError as exc:
        raise ProviderAuthError(str(exc)) from exc
    except (httplib2.HttpLib2Error, OSError) as exc:
        raise ProviderRequestError(f"Google API request failed: {exc}") from exc


class GoogleSheetsClient:
    """Read and write cell ranges in a spreadsheet."""

    async def read_values(
        self,
        token: ProviderToken,
        *,
        sheet_id: str,
        range_: str,
    ) -> List[List[Any]]:
        """Return the rows of ``range_`` as lists of formatted cell values."""

        def _execute_read() -> List[List[Any]]:
            service = _build_service("sheets", "v4", token)
            response = (
                service.spreadsheets()
                .values()
                .get(spreadsheetId=sheet_id, range=range_, majorDimension="ROWS")
                .execute()
            )
            return response.get("values", [])

        return await _execute(_execute_read)

    async def update_value(
        self,
        token: ProviderToken,
        *,
        sheet_id: str,
        range_: str,
        value: Any,
    ) -> str:
        """Write a single value and return the updated range."""

        def _execute_update() -> str:
            service = _build_service("sheets", "v4", token)
            result = (
                service.spreadsheets()
                .values()
                .update(
                    spreadsheetId=sheet_id,
                    range=range_,
                    valueInputOption="USER_ENTERED",
                    body={"values": [[value]]},
                )
                .execute()
            )
            return result.get("updatedRange", range_)

        return await _execute(_execute_update)


class GoogleCalendarClient:
    """List events on the user's primary calendar."""

    async def list_events(
        self,
        token: ProviderToken,
        *,
        time_min: datetime,
        time_max: datetime,
        max_results: int = 100,
    ) -> List[Dict[str, Any]]:
        def _execute_list() -> List[Dict[str, Any]]:
            service = _build_service("calendar", "v3", token)
            response = (
                service.events()
                .list(
                    calendarId="primary",
                    timeMin=time_min.isoformat(),
                    timeMax=time_max.isoformat(),
                    singleEvents=True,
                    orderBy="startTime",
                    maxResults=max_results,
                )
                .execute()
            )
            return response.get("items", [])

        return await _execute(_execute_list)


__all__ = ["GoogleCalendarClient", "GoogleSheetsClient"]
