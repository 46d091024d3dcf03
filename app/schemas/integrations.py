"""
Pydantic models for calendar, KPI sheet and CRM responses.
"""

from typing import List

from pydantic import BaseModel, Field


class Meeting(BaseModel):
    """A calendar event that counts as a customer meeting."""

    id: str
    title: str
    date: str = Field(..., description="Start date-time, or date for all-day events.")
    attendees: int = 0


class MeetingListResponse(BaseModel):
    meetings: List[Meeting] = Field(default_factory=list)


class KPIProgress(BaseModel):
    current: int
    target: int


class KPISummary(BaseModel):
    userPartnerMeeting: KPIProgress
    cxoVisit: KPIProgress
    quarter: str = Field(..., description="Quarter label such as '2026 Q4'.")


class KPIResponse(BaseModel):
    kpi: KPISummary
    pendingMeetings: List[Meeting] = Field(default_factory=list)


class MeetingSyncRequest(BaseModel):
    """Add a number of meetings to the user's KPI for the current quarter."""

    email: str = Field(..., min_length=1)
    meetingCount: int = Field(..., ge=0)


class Opportunity(BaseModel):
    id: str
    name: str
    accountName: str
    amount: float = 0
    closeDate: str | None = None
    stageName: str | None = None


class OpportunitySearchResponse(BaseModel):
    opportunities: List[Opportunity] = Field(default_factory=list)


__all__ = [
    "KPIProgress",
    "KPIResponse",
    "KPISummary",
    "Meeting",
    "MeetingListResponse",
    "MeetingSyncRequest",
    "Opportunity",
    "OpportunitySearchResponse",
]
