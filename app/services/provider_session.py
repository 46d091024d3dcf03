"""
Authenticated provider calls with a single refresh-and-retry on token expiry.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from app.clients import ProviderAuthError
from app.models import Provider, ProviderToken
from app.services.connections import ConnectionService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConnectionRequiredError(Exception):
    """The user has not linked the provider."""

    def __init__(self, provider: Provider) -> None:
        super().__init__(f"{provider.display_name} connection is required.")
        self.provider = provider


class ReconnectionRequiredError(Exception):
    """The stored credentials can no longer be refreshed."""

    def __init__(self, provider: Provider) -> None:
        super().__init__(f"Reconnection to {provider.display_name} is required.")
        self.provider = provider


class TokenRefresher(Protocol):
    async def refresh_access_token(
        self, token: ProviderToken
    ) -> Optional[ProviderToken]: ...


class ProviderSession:
    """Run provider operations with the user's stored token.

    The stored token is refreshed at most once per call: ahead of the call when
    its recorded expiry has passed, or after the provider answers 401. A call
    rejected after a refresh has been attempted is not retried again.
    """

    def __init__(
        self,
        provider: Provider,
        *,
        connections: ConnectionService,
        refresher: TokenRefresher,
    ) -> None:
        self.provider = provider
        self._connections = connections
        self._refresher = refresher

    def is_connected(self, email: str) -> bool:
        return self._connections.get_token(email, self.provider) is not None

    async def call(
        self,
        email: str,
        operation: Callable[[ProviderToken], Awaitable[T]],
    ) -> T:
        token = self._connections.get_token(email, self.provider)
        if token is None:
            raise ConnectionRequiredError(self.provider)

        refresh_attempted = False
        if token.is_expired():
            refresh_attempted = True
            refreshed = await self._refresh(email, token)
            if refreshed is not None:
                token = refreshed
            else:
                logger.info(
                    "Proceeding with expired %s token for %s", self.provider.value, email
                )

        try:
            return await operation(token)
        except ProviderAuthError:
            if refresh_attempted:
                raise ReconnectionRequiredError(self.provider) from None
            logger.info(
                "%s rejected the access token for %s; refreshing",
                self.provider.display_name,
                email,
            )

        refreshed = await self._refresh(email, token)
        if refreshed is None:
            raise ReconnectionRequiredError(self.provider)

        try:
            return await operation(refreshed)
        except ProviderAuthError:
            raise ReconnectionRequiredError(self.provider) from None

    async def _refresh(self, email: str, token: ProviderToken) -> Optional[ProviderToken]:
        refreshed = await self._refresher.refresh_access_token(token)
        if refreshed is None:
            logger.warning(
                "%s token refresh unavailable for %s", self.provider.display_name, email
            )
            return None
        self._connections.save_token(email, self.provider, refreshed)
        return refreshed


__all__ = [
    "ConnectionRequiredError",
    "ProviderSession",
    "ReconnectionRequiredError",
    "TokenRefresher",
]
