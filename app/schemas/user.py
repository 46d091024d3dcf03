"""Schemas for user profiles and linked accounts."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models import Provider


class ProfileRegistrationRequest(BaseModel):
    """Payload for creating or updating a profile."""

    email: str = Field(..., min_length=1)
    name_kanji: str = Field(..., min_length=1, description="Legal name as written.")
    name_alphabet: str = Field(
        ...,
        min_length=1,
        description="Romanized name, used to find the user's row in the KPI sheet.",
    )
    default_timing: Optional[str] = Field(None, description="Preferred default setting.")


class UserProfile(BaseModel):
    email: str
    name_kanji: str
    name_alphabet: str
    default_timing: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileRegistrationResponse(BaseModel):
    success: bool = True
    message: str
    profile: UserProfile


class ProfileLookupResponse(BaseModel):
    registered: bool
    profile: Optional[UserProfile] = None


class ConnectionStatusResponse(BaseModel):
    google_connected: bool
    salesforce_connected: bool


class DisconnectRequest(BaseModel):
    email: str = Field(..., min_length=1)
    service: Provider


__all__ = [
    "ConnectionStatusResponse",
    "DisconnectRequest",
    "ProfileLookupResponse",
    "ProfileRegistrationRequest",
    "ProfileRegistrationResponse",
    "UserProfile",
]
