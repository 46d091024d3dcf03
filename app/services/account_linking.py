"""
OAuth account linking for the supported providers.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Mapping, Optional, Protocol

from app.clients import InvalidOAuthStateError, OAuthStateEncoder
from app.models import Provider, ProviderToken
from app.services.connections import ConnectionService

logger = logging.getLogger(__name__)


class ProviderNotConfiguredError(Exception):
    """Client credentials for the provider are missing."""


class ConnectionStorageError(Exception):
    """Tokens were obtained but could not be persisted."""


class OAuthProviderClient(Protocol):
    @property
    def is_configured(self) -> bool: ...

    def build_authorization_url(self, state: str) -> str: ...

    async def exchange_authorization_code(self, code: str) -> ProviderToken: ...


class AccountLinkingService:
    """Start and complete the authorization-code flow for a user."""

    def __init__(
        self,
        *,
        state_encoder: OAuthStateEncoder,
        connections: ConnectionService,
        oauth_clients: Mapping[Provider, OAuthProviderClient],
    ) -> None:
        self._state = state_encoder
        self._connections = connections
        self._clients = oauth_clients

    def _client(self, provider: Provider) -> OAuthProviderClient:
        client = self._clients.get(provider)
        if client is None or not client.is_configured:
            raise ProviderNotConfiguredError(
                f"{provider.display_name} integration is not configured."
            )
        return client

    def build_authorization_url(self, provider: Provider, email: str) -> str:
        client = self._client(provider)
        state = self._state.encode(
            {
                "email": email,
                "provider": provider.value,
                "nonce": uuid.uuid4().hex,
                "issued_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        return client.build_authorization_url(state)

    def decode_state(self, provider: Provider, state: str) -> str:
        """Return the email carried by ``state``."""
        payload = self._state.decode(state)
        email: Optional[str] = payload.get("email")
        if not email or payload.get("provider") != provider.value:
            raise InvalidOAuthStateError("OAuth state does not match this provider.")
        return email

    async def complete(self, provider: Provider, *, code: str, state: str) -> str:
        """Exchange ``code`` and store the tokens; returns the linked email."""
        email = self.decode_state(provider, state)
        client = self._client(provider)
        token = await client.exchange_authorization_code(code)

        try:
            self._connections.save_token(email, provider, token)
        except Exception as exc:
            logger.exception("Failed to store %s connection for %s", provider.value, email)
            raise ConnectionStorageError(str(exc)) from exc

        logger.info("Linked %s account for %s", provider.display_name, email)
        return email


__all__ = [
    "AccountLinkingService",
    "ConnectionStorageError",
    "OAuthProviderClient",
    "ProviderNotConfiguredError",
]
