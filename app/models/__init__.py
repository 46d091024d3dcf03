"""Domain model exports."""

from .connections import Provider, ProviderToken

__all__ = ["Provider", "ProviderToken"]
