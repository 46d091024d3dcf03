"""Exceptions raised by provider API wrappers."""

from __future__ import annotations


class ProviderAuthError(Exception):
    """The provider rejected the access token (HTTP 401)."""


class ProviderRequestError(Exception):
    """Any other provider failure: transport error, error status or bad payload."""


__all__ = ["ProviderAuthError", "ProviderRequestError"]
