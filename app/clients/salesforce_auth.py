"""Salesforce OAuth client for the web-server (authorization code) flow."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from fastapi import status

from app.clients.google_auth import HTTP_TIMEOUT_SECONDS, OAuthTokenExchangeError
from app.core.config import OAuthSettings, SalesforceSettings
from app.models import ProviderToken

logger = logging.getLogger(__name__)


class SalesforceOAuthClient:
    """Build Salesforce authorization URLs, exchange codes and refresh tokens.

    Salesforce access tokens carry no expiry; they are refreshed when an API
    call answers 401.
    """

    def __init__(
        self,
        settings: SalesforceSettings,
        oauth_settings: OAuthSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._oauth = oauth_settings
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    @property
    def token_url(self) -> str:
        return f"{self._settings.login_url.rstrip('/')}/services/oauth2/token"

    def build_authorization_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self._settings.client_id,
            "redirect_uri": str(self._settings.redirect_uri),
            "scope": " ".join(self._oauth.salesforce_scopes),
            "state": state,
        }
        base_url = f"{self._settings.login_url.rstrip('/')}/services/oauth2/authorize"
        return f"{base_url}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> ProviderToken:
        payload = {
            "grant_type": "authorization_code",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "redirect_uri": str(self._settings.redirect_uri),
            "code": code,
        }

        try:
            async with httpx.AsyncClient(
                timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(str(exc)) from exc

        if response.status_code != status.HTTP_200_OK:
            raise OAuthTokenExchangeError(response.text)

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError(
                "Salesforce returned a malformed token response."
            ) from exc
        access_token = token_payload.get("access_token")
        instance_url = token_payload.get("instance_url")
        if not access_token or not instance_url:
            raise OAuthTokenExchangeError(
                "Incomplete token payload returned from Salesforce."
            )

        return ProviderToken(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
            instance_url=instance_url,
        )

    async def refresh_access_token(self, token: ProviderToken) -> Optional[ProviderToken]:
        """Refresh the access token, or return ``None`` when refresh is unavailable."""
        if not self.is_configured or not token.refresh_token:
            return None

        payload = {
            "grant_type": "refresh_token",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "refresh_token": token.refresh_token,
        }

        try:
            async with httpx.AsyncClient(
                timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=payload)
        except httpx.HTTPError as exc:
            logger.warning("Salesforce token refresh failed: %s", exc)
            return None

        if response.status_code != status.HTTP_200_OK:
            logger.warning(
                "Salesforce token refresh rejected (%s): %s",
                response.status_code,
                response.text,
            )
            return None

        try:
            token_payload = response.json()
        except ValueError:
            logger.warning("Salesforce returned a malformed refresh response.")
            return None
        access_token = token_payload.get("access_token")
        if not access_token:
            logger.warning("Incomplete refresh payload returned from Salesforce.")
            return None

        return ProviderToken(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token") or token.refresh_token,
            instance_url=token_payload.get("instance_url") or token.instance_url,
        )


__all__ = ["SalesforceOAuthClient"]
