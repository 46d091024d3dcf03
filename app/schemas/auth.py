"""Schemas for passcode authentication."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PasscodeIssueRequest(BaseModel):
    """Request a one-time passcode for an email address."""

    email: str = Field(..., min_length=1, description="Address the code is sent to.")


class PasscodeVerifyRequest(BaseModel):
    """Submit a passcode received by email."""

    email: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=1, description="The code as typed by the user.")


class PasscodeIssueResponse(BaseModel):
    success: bool = True
    message: str
    devMode: Optional[bool] = None
    devOtp: Optional[str] = Field(
        None, description="Only returned in development mode with APP_ENV=development."
    )


class StatusResponse(BaseModel):
    """Generic acknowledgement body."""

    success: bool = True
    message: str


__all__ = [
    "PasscodeIssueRequest",
    "PasscodeIssueResponse",
    "PasscodeVerifyRequest",
    "StatusResponse",
]
