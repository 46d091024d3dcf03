try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.clients import OAuthStateEncoder, OAuthTokenExchangeError
from app.main import app
from app.models import Provider, ProviderToken
from app.services import AccountLinkingService

EMAIL = "ito@example.com"


class DummyOAuthClient:
    def __init__(self, *, configured: bool = True, token: ProviderToken | None = None) -> None:
        self.is_configured = configured
        self.token = token or ProviderToken(access_token="access-token", refresh_token="refresh")
        self.codes: list[str] = []

    def build_authorization_url(self, state: str) -> str:
        return f"https://oauth.example.com/auth?state={state}"

    async def exchange_authorization_code(self, code: str) -> ProviderToken:
        self.codes.append(code)
        if code == "bad-code":
            raise OAuthTokenExchangeError("invalid_grant")
        return self.token


class BrokenConnections:
    def save_token(self, email, provider, token) -> None:
        raise RuntimeError("table unavailable")


@pytest.fixture()
def linking_overrides(connections):
    from app import dependencies

    clients = {
        Provider.GOOGLE: DummyOAuthClient(),
        Provider.SALESFORCE: DummyOAuthClient(
            token=ProviderToken(
                access_token="sf-access",
                refresh_token="sf-refresh",
                instance_url="https://acme.my.salesforce.com",
            )
        ),
    }
    state = {
        "linking": AccountLinkingService(
            state_encoder=OAuthStateEncoder("state-secret"),
            connections=connections,
            oauth_clients=clients,
        ),
        "clients": clients,
        "connections": connections,
    }
    app.dependency_overrides[dependencies.get_account_linking_service] = lambda: state["linking"]

    yield state

    app.dependency_overrides.clear()


def _state_from(location: str) -> str:
    return parse_qs(urlparse(location).query)["state"][0]


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("path", "provider"),
    [("google", Provider.GOOGLE), ("sfdc", Provider.SALESFORCE)],
)
async def test_linking_round_trip_stores_connection(linking_overrides, path, provider):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        start = await client.get(f"/api/{path}/auth", params={"email": EMAIL})
        callback = await client.get(
            f"/api/{path}/callback",
            params={"state": _state_from(start.headers["location"]), "code": "oauth-code"},
        )

    assert start.status_code == 307
    assert start.headers["location"].startswith("https://oauth.example.com/auth")
    assert callback.status_code == 200
    assert "text/html" in callback.headers["content-type"]
    assert "window.close()" in callback.text
    assert linking_overrides["clients"][provider].codes == ["oauth-code"]
    assert linking_overrides["connections"].status(EMAIL)[provider] is True


@pytest.mark.anyio
async def test_salesforce_connection_keeps_instance_url(linking_overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        start = await client.get("/api/sfdc/auth", params={"email": EMAIL})
        await client.get(
            "/api/sfdc/callback",
            params={"state": _state_from(start.headers["location"]), "code": "c"},
        )

    token = linking_overrides["connections"].get_token(EMAIL, Provider.SALESFORCE)
    assert token.instance_url == "https://acme.my.salesforce.com"


@pytest.mark.anyio
async def test_tampered_state_is_rejected(linking_overrides):
    forged = OAuthStateEncoder("other-secret").encode(
        {"email": "victim@example.com", "provider": "google", "issued_at": "2099-01-01T00:00:00+00:00"}
    )

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get(
            "/api/google/callback", params={"state": forged, "code": "oauth-code"}
        )

    assert response.status_code == 200
    assert "invalid or has expired" in response.text
    assert linking_overrides["clients"][Provider.GOOGLE].codes == []
    assert linking_overrides["connections"].status("victim@example.com")[Provider.GOOGLE] is False


@pytest.mark.anyio
async def test_state_for_one_provider_is_rejected_by_the_other(linking_overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        start = await client.get("/api/google/auth", params={"email": EMAIL})
        response = await client.get(
            "/api/sfdc/callback",
            params={"state": _state_from(start.headers["location"]), "code": "c"},
        )

    assert "invalid or has expired" in response.text
    assert linking_overrides["connections"].status(EMAIL)[Provider.SALESFORCE] is False


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("params", "message"),
    [
        ({"error": "access_denied"}, "Authorization was cancelled."),
        ({"state": "abc"}, "Authorization parameters are missing."),
        ({"code": "abc"}, "Authorization parameters are missing."),
    ],
)
async def test_callback_error_pages(linking_overrides, params, message):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/api/google/callback", params=params)

    assert response.status_code == 200
    assert message in response.text


@pytest.mark.anyio
async def test_failed_token_exchange_renders_error_page(linking_overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        start = await client.get("/api/google/auth", params={"email": EMAIL})
        response = await client.get(
            "/api/google/callback",
            params={"state": _state_from(start.headers["location"]), "code": "bad-code"},
        )

    assert "Could not obtain an access token." in response.text
    assert linking_overrides["connections"].status(EMAIL)[Provider.GOOGLE] is False


@pytest.mark.anyio
async def test_storage_failure_renders_error_page(linking_overrides):
    linking_overrides["linking"] = AccountLinkingService(
        state_encoder=OAuthStateEncoder("state-secret"),
        connections=BrokenConnections(),
        oauth_clients=linking_overrides["clients"],
    )

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        start = await client.get("/api/google/auth", params={"email": EMAIL})
        response = await client.get(
            "/api/google/callback",
            params={"state": _state_from(start.headers["location"]), "code": "c"},
        )

    assert "Could not save the connection." in response.text


@pytest.mark.anyio
async def test_start_linking_fails_when_provider_not_configured(linking_overrides):
    linking_overrides["clients"][Provider.GOOGLE].is_configured = False

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/api/google/auth", params={"email": EMAIL})

    assert response.status_code == 500
    assert response.json() == {"error": "Google integration is not configured."}


@pytest.mark.anyio
async def test_start_linking_requires_email(linking_overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/api/sfdc/auth")

    assert response.status_code == 400
    assert response.json() == {"error": "email is required."}
