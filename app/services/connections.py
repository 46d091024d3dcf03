"""
Persistence of linked provider accounts, keyed by email and provider.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from app.clients import RecordStore
from app.models import Provider, ProviderToken
from app.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


def user_partition_key(email: str) -> str:
    return f"user#{email}"


def connection_sort_key(provider: Provider) -> str:
    return f"connection#{provider.value}"


class ConnectionService:
    """Read, write and clear provider tokens for a user."""

    def __init__(self, *, store: RecordStore, token_cipher: TokenCipherService) -> None:
        self._store = store
        self._cipher = token_cipher

    def get_token(self, email: str, provider: Provider) -> Optional[ProviderToken]:
        record = self._store.get_item(
            partition_key=user_partition_key(email),
            sort_key=connection_sort_key(provider),
        )
        if not record or not record.get("access_token_encrypted"):
            return None

        expires_at = record.get("expires_at")
        return ProviderToken(
            access_token=self._cipher.decrypt(record["access_token_encrypted"]),
            refresh_token=self._cipher.decrypt(record.get("refresh_token_encrypted")),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            instance_url=record.get("instance_url"),
        )

    def save_token(self, email: str, provider: Provider, token: ProviderToken) -> None:
        """Create or replace the connection, preserving its creation time."""
        partition_key = user_partition_key(email)
        sort_key = connection_sort_key(provider)
        now = datetime.now(timezone.utc).isoformat()
        existing = self._store.get_item(partition_key=partition_key, sort_key=sort_key)

        record = {
            "pk": partition_key,
            "sk": sort_key,
            "email": email,
            "provider": provider.value,
            "access_token_encrypted": self._cipher.encrypt(token.access_token),
            "refresh_token_encrypted": self._cipher.encrypt(token.refresh_token),
            "created_at": (existing or {}).get("created_at", now),
            "updated_at": now,
        }
        if token.expires_at is not None:
            record["expires_at"] = token.expires_at.isoformat()
        if token.instance_url:
            record["instance_url"] = token.instance_url
        self._store.put_item(record)

    def clear(self, email: str, provider: Provider) -> None:
        self._store.delete_item(
            partition_key=user_partition_key(email),
            sort_key=connection_sort_key(provider),
        )
        logger.info("Cleared %s connection for %s", provider.value, email)

    def status(self, email: str) -> Dict[Provider, bool]:
        return {
            provider: self._store.get_item(
                partition_key=user_partition_key(email),
                sort_key=connection_sort_key(provider),
            )
            is not None
            for provider in Provider
        }


__all__ = ["ConnectionService", "connection_sort_key", "user_partition_key"]
