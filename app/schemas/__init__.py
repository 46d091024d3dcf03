"""Public schema exports."""

from .auth import (
    PasscodeIssueRequest,
    PasscodeIssueResponse,
    PasscodeVerifyRequest,
    StatusResponse,
)
from .integrations import (
    KPIProgress,
    KPIResponse,
    KPISummary,
    Meeting,
    MeetingListResponse,
    MeetingSyncRequest,
    Opportunity,
    OpportunitySearchResponse,
)
from .user import (
    ConnectionStatusResponse,
    DisconnectRequest,
    ProfileLookupResponse,
    ProfileRegistrationRequest,
    ProfileRegistrationResponse,
    UserProfile,
)

__all__ = [
    "ConnectionStatusResponse",
    "DisconnectRequest",
    "KPIProgress",
    "KPIResponse",
    "KPISummary",
    "Meeting",
    "MeetingListResponse",
    "MeetingSyncRequest",
    "Opportunity",
    "OpportunitySearchResponse",
    "PasscodeIssueRequest",
    "PasscodeIssueResponse",
    "PasscodeVerifyRequest",
    "ProfileLookupResponse",
    "ProfileRegistrationRequest",
    "ProfileRegistrationResponse",
    "StatusResponse",
    "UserProfile",
]
