"""Opportunity search against the user's Salesforce org."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from app.clients import SalesforceClient
from app.models import ProviderToken
from app.schemas import Opportunity
from app.services.provider_session import ConnectionRequiredError, ProviderSession

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


def sample_opportunities(query: str) -> List[Opportunity]:
    return [
        Opportunity(
            id="006MOCK00000001",
            name=f"{query} - Development Deal",
            accountName=f"{query} Corp",
            amount=150000,
            closeDate="2026-03-31",
            stageName="Negotiation",
        ),
        Opportunity(
            id="006MOCK00000002",
            name=f"{query} - Enterprise Agreement",
            accountName=f"{query} Inc",
            amount=500000,
            closeDate="2026-06-30",
            stageName="Proposal",
        ),
    ]


def to_opportunity(record: Dict[str, Any]) -> Opportunity:
    account = record.get("Account") or {}
    return Opportunity(
        id=record.get("Id", ""),
        name=record.get("Name") or "",
        accountName=account.get("Name") or "Unknown",
        amount=record.get("Amount") or 0,
        closeDate=record.get("CloseDate"),
        stageName=record.get("StageName"),
    )


class OpportunitySearchService:
    """Search open opportunities by opportunity or account name."""

    def __init__(
        self,
        *,
        session: ProviderSession,
        salesforce_client: SalesforceClient,
        allow_sample_data: bool,
    ) -> None:
        self._session = session
        self._salesforce = salesforce_client
        self._allow_sample_data = allow_sample_data

    async def search(self, email: str, query: str) -> List[Opportunity]:
        if len(query) < MIN_QUERY_LENGTH:
            raise ValueError(
                f"search query must be at least {MIN_QUERY_LENGTH} characters"
            )

        async def _search(token: ProviderToken) -> List[Dict[str, Any]]:
            return await self._salesforce.search_open_opportunities(token, query)

        try:
            records = await self._session.call(email, _search)
        except ConnectionRequiredError:
            if not self._allow_sample_data:
                raise
            logger.info("[DEV MODE] Salesforce not connected for %s; sample results", email)
            return sample_opportunities(query)

        return [to_opportunity(record) for record in records]


__all__ = [
    "MIN_QUERY_LENGTH",
    "OpportunitySearchService",
    "sample_opportunities",
    "to_opportunity",
]
