"""Expose constructed client wrappers."""

from .dynamodb import DynamoDBRecordStore
from .email import EmailDeliveryError, ResendEmailClient
from .errors import ProviderAuthError, ProviderRequestError
from .google_auth import (
    GoogleOAuthClient,
    InvalidOAuthStateError,
    OAuthStateEncoder,
    OAuthTokenExchangeError,
)
from .google_sheets import GoogleCalendarClient, GoogleSheetsClient
from .memory_store import InMemoryRecordStore, RecordStore
from .salesforce import SalesforceClient
from .salesforce_auth import SalesforceOAuthClient

__all__ = [
    "DynamoDBRecordStore",
    "EmailDeliveryError",
    "GoogleCalendarClient",
    "GoogleOAuthClient",
    "GoogleSheetsClient",
    "InMemoryRecordStore",
    "InvalidOAuthStateError",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
    "ProviderAuthError",
    "ProviderRequestError",
    "RecordStore",
    "ResendEmailClient",
    "SalesforceClient",
    "SalesforceOAuthClient",
]
