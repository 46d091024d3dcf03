"""
Domain models for linked provider accounts.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Provider(str, Enum):
    """Third-party services a user can link."""

    GOOGLE = "google"
    SALESFORCE = "salesforce"

    @property
    def display_name(self) -> str:
        return "Google" if self is Provider.GOOGLE else "Salesforce"


class ProviderToken(BaseModel):
    """OAuth credentials held for one provider connection."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = Field(
        None, description="Google only; Salesforce tokens are refreshed on 401."
    )
    instance_url: Optional[str] = Field(
        None, description="Salesforce only; base URL of the org's REST API."
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        current = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= current


__all__ = ["Provider", "ProviderToken"]
