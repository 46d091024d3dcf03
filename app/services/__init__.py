"""Service layer exports."""

from .account_linking import (
    AccountLinkingService,
    ConnectionStorageError,
    ProviderNotConfiguredError,
)
from .connections import ConnectionService
from .kpi import KPIRowNotFoundError, KPIService, ProfileRequiredError
from .meetings import MeetingService
from .opportunities import OpportunitySearchService
from .passcodes import (
    PasscodeError,
    PasscodeExpiredError,
    PasscodeMismatchError,
    PasscodeNotFoundError,
    PasscodeService,
)
from .profiles import ProfileService
from .provider_session import (
    ConnectionRequiredError,
    ProviderSession,
    ReconnectionRequiredError,
)
from .token_cipher import TokenCipherService

__all__ = [
    "AccountLinkingService",
    "ConnectionRequiredError",
    "ConnectionService",
    "ConnectionStorageError",
    "KPIRowNotFoundError",
    "KPIService",
    "MeetingService",
    "OpportunitySearchService",
    "PasscodeError",
    "PasscodeExpiredError",
    "PasscodeMismatchError",
    "PasscodeNotFoundError",
    "PasscodeService",
    "ProfileRequiredError",
    "ProfileService",
    "ProviderNotConfiguredError",
    "ProviderSession",
    "ReconnectionRequiredError",
    "TokenCipherService",
]
