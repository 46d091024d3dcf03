"""
OAuth utilities shared by the provider integrations, plus the Google client.

These helpers manage the account linking flow and the token refresh lifecycle.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import logging
from datetime import datetime, timedelta, timezone
from hashlib import sha256
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from fastapi import status

from app.core.config import GoogleSettings, OAuthSettings
from app.models import ProviderToken

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 10.0


class InvalidOAuthStateError(Exception):
    """Raised when a state value is malformed, tampered with or stale."""


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str, *, ttl_seconds: int = 900) -> None:
        self._secret_key = secret_key.encode("utf-8")
        self._ttl = timedelta(seconds=ttl_seconds)

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise InvalidOAuthStateError("OAuth state is not valid base64.") from exc

        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise InvalidOAuthStateError("Invalid OAuth state signature.")

        try:
            payload = json.loads(serialized)
            issued_at = datetime.fromisoformat(payload["issued_at"])
        except (ValueError, KeyError, TypeError) as exc:
            raise InvalidOAuthStateError("OAuth state payload is malformed.") from exc

        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        if datetime.now(timezone.utc) - issued_at > self._ttl:
            raise InvalidOAuthStateError("OAuth state has expired.")
        return payload


class GoogleOAuthClient:
    """Build Google authorization URLs, exchange codes and refresh tokens."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_settings
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self._google.is_configured

    def build_authorization_url(self, state: str) -> str:
        """Construct the Google OAuth consent URL."""
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": str(self._google.redirect_uri),
            "response_type": "code",
            "scope": " ".join(self._oauth.google_scopes),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> ProviderToken:
        """Exchange an authorization code for an access/refresh token pair."""
        payload = {
            "code": code,
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "redirect_uri": str(self._google.redirect_uri),
            "grant_type": "authorization_code",
        }

        try:
            async with httpx.AsyncClient(
                timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(str(exc)) from exc

        if response.status_code != status.HTTP_200_OK:
            raise OAuthTokenExchangeError(response.text)

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError(
                "Google returned a malformed token response."
            ) from exc
        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise OAuthTokenExchangeError("Incomplete token payload returned from Google.")

        return ProviderToken(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=int(expires_in)),
        )

    async def refresh_access_token(self, token: ProviderToken) -> Optional[ProviderToken]:
        """Refresh the access token, or return ``None`` when refresh is unavailable."""
        if not self.is_configured or not token.refresh_token:
            return None

        payload = {
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "refresh_token": token.refresh_token,
            "grant_type": "refresh_token",
        }

        try:
            async with httpx.AsyncClient(
                timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            logger.warning("Google token refresh failed: %s", exc)
            return None

        if response.status_code != status.HTTP_200_OK:
            logger.warning(
                "Google token refresh rejected (%s): %s",
                response.status_code,
                response.text,
            )
            return None

        try:
            token_payload = response.json()
        except ValueError:
            logger.warning("Google returned a malformed refresh response.")
            return None
        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            logger.warning("Incomplete refresh payload returned from Google.")
            return None

        return ProviderToken(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token") or token.refresh_token,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=int(expires_in)),
        )


__all__ = [
    "GoogleOAuthClient",
    "InvalidOAuthStateError",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
]
