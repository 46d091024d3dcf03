"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.clients import InMemoryRecordStore
from app.services import ConnectionService, TokenCipherService


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def token_cipher() -> TokenCipherService:
    return TokenCipherService(secret="test-secret")


@pytest.fixture
def connections(record_store, token_cipher) -> ConnectionService:
    return ConnectionService(store=record_store, token_cipher=token_cipher)
