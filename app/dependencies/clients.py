"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Storage and the development fallbacks are chosen here, once per process.
"""

import logging
from functools import lru_cache
from typing import Optional

from app.clients import (
    DynamoDBRecordStore,
    GoogleCalendarClient,
    GoogleOAuthClient,
    GoogleSheetsClient,
    InMemoryRecordStore,
    OAuthStateEncoder,
    RecordStore,
    ResendEmailClient,
    SalesforceClient,
    SalesforceOAuthClient,
)
from app.core.config import get_settings
from app.models import Provider
from app.services import (
    AccountLinkingService,
    ConnectionService,
    KPIService,
    MeetingService,
    OpportunitySearchService,
    PasscodeService,
    ProfileService,
    ProviderSession,
    TokenCipherService,
)

logger = logging.getLogger(__name__)

_DEVELOPMENT_SECRET = "local-development-secret"


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_record_store() -> RecordStore:
    """Provide DynamoDB storage when a table is configured, else process memory."""
    settings = _settings()
    if settings.aws.dynamodb_table_name:
        return DynamoDBRecordStore(settings.aws)
    logger.warning("DYNAMODB_TABLE_NAME not set; using the in-memory record store")
    return InMemoryRecordStore()


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.google.client_secret
    if not secret:
        logger.warning("TOKEN_ENCRYPTION_SECRET not set; using a development secret")
        secret = _DEVELOPMENT_SECRET
    return TokenCipherService(secret=secret)


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder signing with the configured secret."""
    settings = _settings()
    secret = (
        settings.security.oauth_state_secret
        or settings.security.token_encryption_secret
        or _DEVELOPMENT_SECRET
    )
    return OAuthStateEncoder(secret_key=secret, ttl_seconds=settings.oauth.state_ttl_seconds)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    settings = _settings()
    return GoogleOAuthClient(settings.google, settings.oauth)


@lru_cache()
def get_salesforce_oauth_client() -> SalesforceOAuthClient:
    settings = _settings()
    return SalesforceOAuthClient(settings.salesforce, settings.oauth)


@lru_cache()
def get_email_client() -> Optional[ResendEmailClient]:
    """Provide the email client, or ``None`` to run passcodes in development mode."""
    settings = _settings()
    if not settings.notifications.is_configured:
        logger.warning("RESEND_API_KEY not set; passcodes will be logged, not emailed")
        return None
    return ResendEmailClient(
        api_key=settings.notifications.resend_api_key,
        from_email=settings.notifications.from_email,
    )


@lru_cache()
def get_connection_service() -> ConnectionService:
    return ConnectionService(
        store=get_record_store(), token_cipher=get_token_cipher_service()
    )


@lru_cache()
def get_google_session() -> ProviderSession:
    """Refresh-and-retry wrapper for Google API calls."""
    return ProviderSession(
        Provider.GOOGLE,
        connections=get_connection_service(),
        refresher=get_google_oauth_client(),
    )


@lru_cache()
def get_salesforce_session() -> ProviderSession:
    """Refresh-and-retry wrapper for Salesforce API calls."""
    return ProviderSession(
        Provider.SALESFORCE,
        connections=get_connection_service(),
        refresher=get_salesforce_oauth_client(),
    )


def get_passcode_service() -> PasscodeService:
    return PasscodeService(store=get_record_store(), email_client=get_email_client())


def get_profile_service() -> ProfileService:
    return ProfileService(store=get_record_store())


def get_account_linking_service() -> AccountLinkingService:
    return AccountLinkingService(
        state_encoder=get_oauth_state_encoder(),
        connections=get_connection_service(),
        oauth_clients={
            Provider.GOOGLE: get_google_oauth_client(),
            Provider.SALESFORCE: get_salesforce_oauth_client(),
        },
    )


def get_meeting_service() -> MeetingService:
    settings = _settings()
    return MeetingService(
        session=get_google_session(),
        calendar_client=GoogleCalendarClient(),
        keywords=settings.calendar.meeting_keywords,
    )


def get_kpi_service() -> KPIService:
    settings = _settings()
    return KPIService(
        session=get_google_session(),
        sheets_client=GoogleSheetsClient(),
        profiles=get_profile_service(),
        settings=settings.kpi,
    )


def get_opportunity_search_service() -> OpportunitySearchService:
    settings = _settings()
    return OpportunitySearchService(
        session=get_salesforce_session(),
        salesforce_client=SalesforceClient(api_version=settings.salesforce.api_version),
        allow_sample_data=not settings.salesforce.is_configured,
    )


__all__ = [
    "get_account_linking_service",
    "get_connection_service",
    "get_email_client",
    "get_google_oauth_client",
    "get_google_session",
    "get_kpi_service",
    "get_meeting_service",
    "get_oauth_state_encoder",
    "get_opportunity_search_service",
    "get_passcode_service",
    "get_profile_service",
    "get_record_store",
    "get_salesforce_oauth_client",
    "get_salesforce_session",
    "get_token_cipher_service",
]
