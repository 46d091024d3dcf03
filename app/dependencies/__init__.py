"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_account_linking_service,
    get_connection_service,
    get_email_client,
    get_google_oauth_client,
    get_google_session,
    get_kpi_service,
    get_meeting_service,
    get_oauth_state_encoder,
    get_opportunity_search_service,
    get_passcode_service,
    get_profile_service,
    get_record_store,
    get_salesforce_oauth_client,
    get_salesforce_session,
    get_token_cipher_service,
)
from .config import get_app_settings

__all__ = [
    "get_account_linking_service",
    "get_app_settings",
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
