"""Customer meetings pulled from the user's Google Calendar."""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.clients import GoogleCalendarClient
from app.models import ProviderToken
from app.schemas import Meeting
from app.services.provider_session import ProviderSession

logger = logging.getLogger(__name__)


def current_month_range(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """First and last second of the current month, in UTC."""
    current = now or datetime.now(timezone.utc)
    last_day = calendar.monthrange(current.year, current.month)[1]
    start = datetime(current.year, current.month, 1, tzinfo=timezone.utc)
    end = datetime(current.year, current.month, last_day, 23, 59, 59, tzinfo=timezone.utc)
    return start, end


def sample_meetings(now: Optional[datetime] = None) -> List[Meeting]:
    date = (now or datetime.now(timezone.utc)).isoformat()
    return [
        Meeting(id="mock1", title="Customer Meeting - ABC Corp", date=date, attendees=3),
        Meeting(id="mock2", title="打ち合わせ - XYZ社", date=date, attendees=2),
    ]


def select_meetings(
    events: Iterable[Dict[str, Any]], keywords: Iterable[str]
) -> List[Meeting]:
    lowered = [keyword.lower() for keyword in keywords]
    meetings = []
    for event in events:
        title = event.get("summary") or ""
        if not any(keyword in title.lower() for keyword in lowered):
            continue
        start = event.get("start") or {}
        meetings.append(
            Meeting(
                id=event.get("id", ""),
                title=title,
                date=start.get("dateTime") or start.get("date") or "",
                attendees=len(event.get("attendees") or []),
            )
        )
    return meetings


class MeetingService:
    """List this month's meetings, or sample data when Google is not linked."""

    def __init__(
        self,
        *,
        session: ProviderSession,
        calendar_client: GoogleCalendarClient,
        keywords: Iterable[str],
    ) -> None:
        self._session = session
        self._calendar = calendar_client
        self._keywords = tuple(keywords)

    async def list_meetings(self, email: str) -> List[Meeting]:
        if not self._session.is_connected(email):
            logger.info("Google not connected for %s; returning sample meetings", email)
            return sample_meetings()

        time_min, time_max = current_month_range()

        async def _list(token: ProviderToken) -> List[Dict[str, Any]]:
            return await self._calendar.list_events(
                token, time_min=time_min, time_max=time_max
            )

        events = await self._session.call(email, _list)
        return select_meetings(events, self._keywords)


__all__ = [
    "MeetingService",
    "current_month_range",
    "sample_meetings",
    "select_meetings",
]
