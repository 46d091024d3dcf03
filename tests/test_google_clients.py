from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import httplib2
import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from app.clients import (
    GoogleCalendarClient,
    GoogleSheetsClient,
    ProviderAuthError,
    ProviderRequestError,
)
from app.clients import google_sheets
from app.models import Provider, ProviderToken
from app.services import ProviderSession

TOKEN = ProviderToken(access_token="ya29.token")


class FakeRequest:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self._result = result
        self._error = error

    def execute(self) -> Any:
        if self._error is not None:
            raise self._error
        return self._result


class FakeValues:
    def __init__(self, service: "FakeService") -> None:
        self._service = service

    def get(self, **kwargs: Any) -> FakeRequest:
        self._service.calls.append(("get", kwargs))
        return self._service.next_request()

    def update(self, **kwargs: Any) -> FakeRequest:
        self._service.calls.append(("update", kwargs))
        return self._service.next_request()


class FakeSpreadsheets:
    def __init__(self, service: "FakeService") -> None:
        self._service = service

    def values(self) -> FakeValues:
        return FakeValues(self._service)


class FakeEvents:
    def __init__(self, service: "FakeService") -> None:
        self._service = service

    def list(self, **kwargs: Any) -> FakeRequest:
        self._service.calls.append(("list", kwargs))
        return self._service.next_request()


class FakeService:
    def __init__(self, *requests: FakeRequest) -> None:
        self._requests = list(requests)
        self.calls: list[tuple[str, dict]] = []
        self.credentials = None

    def next_request(self) -> FakeRequest:
        return self._requests.pop(0)

    def spreadsheets(self) -> FakeSpreadsheets:
        return FakeSpreadsheets(self)

    def events(self) -> FakeEvents:
        return FakeEvents(self)


def _http_error(status: int) -> HttpError:
    content = b'{"error": {"code": %d, "message": "denied"}}' % status
    return HttpError(httplib2.Response({"status": status}), content)


@pytest.fixture()
def fake_build(monkeypatch):
    services: list[FakeService] = []
    built: list[tuple[str, str]] = []

    def install(*requests: FakeRequest) -> FakeService:
        service = FakeService(*requests)
        services.append(service)
        return service

    def build(api: str, version: str, *, http, cache_discovery: bool) -> FakeService:
        built.append((api, version))
        service = services[-1]
        service.credentials = http.credentials
        return service

    monkeypatch.setattr(google_sheets, "build", build)
    install.built = built  # type: ignore[attr-defined]
    return install


@pytest.mark.asyncio
async def test_read_values_returns_rows(fake_build) -> None:
    service = fake_build(FakeRequest({"values": [["Name", "2026 Q4"], ["Taro", "3"]]}))

    rows = await GoogleSheetsClient().read_values(TOKEN, sheet_id="sheet", range_="Mtg!A:G")

    assert rows == [["Name", "2026 Q4"], ["Taro", "3"]]
    assert service.calls[0] == (
        "get",
        {"spreadsheetId": "sheet", "range": "Mtg!A:G", "majorDimension": "ROWS"},
    )
    assert service.credentials.token == "ya29.token"
    assert fake_build.built == [("sheets", "v4")]


@pytest.mark.asyncio
async def test_read_values_of_empty_range(fake_build) -> None:
    fake_build(FakeRequest({}))

    assert await GoogleSheetsClient().read_values(TOKEN, sheet_id="s", range_="Mtg!A:G") == []


@pytest.mark.asyncio
async def test_update_value_writes_single_cell(fake_build) -> None:
    service = fake_build(FakeRequest({"updatedRange": "Mtg!G3"}))

    updated = await GoogleSheetsClient().update_value(
        TOKEN, sheet_id="sheet", range_="Mtg!G3", value=7
    )

    assert updated == "Mtg!G3"
    _, kwargs = service.calls[0]
    assert kwargs["valueInputOption"] == "USER_ENTERED"
    assert kwargs["body"] == {"values": [[7]]}


@pytest.mark.asyncio
async def test_unauthorized_google_response_raises_auth_error(fake_build) -> None:
    fake_build(FakeRequest(error=_http_error(401)))

    with pytest.raises(ProviderAuthError):
        await GoogleSheetsClient().read_values(TOKEN, sheet_id="s", range_="Mtg!A:G")


@pytest.mark.asyncio
async def test_other_google_errors_raise_request_error(fake_build) -> None:
    fake_build(FakeRequest(error=_http_error(403)))

    with pytest.raises(ProviderRequestError):
        await GoogleSheetsClient().read_values(TOKEN, sheet_id="s", range_="Mtg!A:G")


@pytest.mark.asyncio
async def test_list_events_queries_primary_calendar(fake_build) -> None:
    service = fake_build(FakeRequest({"items": [{"id": "e1", "summary": "Meeting"}]}))
    start = datetime(2026, 10, 1, tzinfo=timezone.utc)
    end = datetime(2026, 10, 31, 23, 59, 59, tzinfo=timezone.utc)

    events = await GoogleCalendarClient().list_events(TOKEN, time_min=start, time_max=end)

    assert events == [{"id": "e1", "summary": "Meeting"}]
    _, kwargs = service.calls[0]
    assert kwargs["calendarId"] == "primary"
    assert kwargs["singleEvents"] is True
    assert kwargs["orderBy"] == "startTime"
    assert kwargs["timeMin"] == start.isoformat()
    assert fake_build.built == [("calendar", "v3")]


@pytest.mark.asyncio
async def test_calendar_network_failure_raises_request_error(fake_build) -> None:
    fake_build(FakeRequest(error=httplib2.ServerNotFoundError("no route")))

    with pytest.raises(ProviderRequestError):
        await GoogleCalendarClient().list_events(
            TOKEN,
            time_min=datetime(2026, 10, 1, tzinfo=timezone.utc),
            time_max=datetime(2026, 10, 31, tzinfo=timezone.utc),
        )


class StubbedGoogleHttp:
    """Answers Google API requests per bearer token, without touching the network."""

    def __init__(self, accepted_token: str, payload: dict) -> None:
        self.accepted_token = accepted_token
        self.payload = payload
        self.tokens: list[str] = []

    def request(self, http, uri, method="GET", body=None, headers=None, **kwargs):
        authorization = {key.lower(): value for key, value in (headers or {}).items()}[
            "authorization"
        ]
        token = authorization.split(" ", 1)[1]
        self.tokens.append(token)
        if token != self.accepted_token:
            content = b'{"error": {"code": 401, "message": "Invalid Credentials"}}'
            return httplib2.Response({"status": 401, "content-type": "application/json"}), content
        return (
            httplib2.Response({"status": 200, "content-type": "application/json"}),
            json.dumps(self.payload).encode("utf-8"),
        )


@pytest.fixture()
def stubbed_http(monkeypatch):
    def install(accepted_token: str, payload: dict) -> StubbedGoogleHttp:
        stub = StubbedGoogleHttp(accepted_token, payload)

        def request(http, uri, method="GET", body=None, headers=None, **kwargs):
            return stub.request(http, uri, method, body, headers, **kwargs)

        monkeypatch.setattr(httplib2.Http, "request", request)
        return stub

    return install


@pytest.mark.asyncio
async def test_rejected_access_token_surfaces_as_auth_error(stubbed_http) -> None:
    stub = stubbed_http("someone-else", {"values": []})

    with pytest.raises(ProviderAuthError):
        await GoogleSheetsClient().read_values(TOKEN, sheet_id="sheet", range_="Mtg!A:G")

    assert stub.tokens == ["ya29.token"]


@pytest.mark.asyncio
async def test_accepted_access_token_reads_values(stubbed_http) -> None:
    stub = stubbed_http("ya29.token", {"values": [["Name"], ["Taro"]]})

    rows = await GoogleSheetsClient().read_values(TOKEN, sheet_id="sheet", range_="Mtg!A:G")

    assert rows == [["Name"], ["Taro"]]
    assert stub.tokens == ["ya29.token"]


@pytest.mark.asyncio
async def test_google_401_is_refreshed_and_retried_by_session(stubbed_http, connections) -> None:
    stub = stubbed_http("ya29.fresh", {"values": [["Name"], ["Taro"]]})
    connections.save_token(
        "taro@example.com",
        Provider.GOOGLE,
        ProviderToken(
            access_token="ya29.stale",
            refresh_token="1//refresh",
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=30),
        ),
    )

    class Refresher:
        calls = 0

        async def refresh_access_token(self, token: ProviderToken) -> ProviderToken:
            Refresher.calls += 1
            return ProviderToken(
                access_token="ya29.fresh",
                refresh_token=token.refresh_token,
                expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
            )

    session = ProviderSession(Provider.GOOGLE, connections=connections, refresher=Refresher())

    async def read(token: ProviderToken):
        return await GoogleSheetsClient().read_values(token, sheet_id="sheet", range_="Mtg!A:G")

    rows = await session.call("taro@example.com", read)

    assert rows == [["Name"], ["Taro"]]
    assert Refresher.calls == 1
    assert stub.tokens == ["ya29.stale", "ya29.fresh"]


@pytest.mark.asyncio
async def test_refresh_error_from_google_auth_is_an_auth_error(fake_build) -> None:
    fake_build(FakeRequest(error=RefreshError("credentials cannot be refreshed")))

    with pytest.raises(ProviderAuthError):
        await GoogleCalendarClient().list_events(
            TOKEN,
            time_min=datetime(2026, 10, 1, tzinfo=timezone.utc),
            time_max=datetime(2026, 10, 31, tzinfo=timezone.utc),
        )
