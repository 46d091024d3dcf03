"""
Application configuration models and helpers.

Centralizes settings management so routes, services and scripts share a
consistent configuration surface. Every provider group can be left empty, in
which case the matching endpoints fall back to their development behaviour.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into the environment."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


def _split_csv(value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
    if isinstance(value, tuple):
        return value
    if isinstance(value, list):
        return tuple(value)
    return tuple(item.strip() for item in value.split(",") if item.strip())


class GoogleSettings(BaseSettings):
    """Client credentials for the Google calendar and sheets integration."""

    client_id: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(
        "http://localhost:8000/api/google/callback",
        validation_alias="GOOGLE_REDIRECT_URI",
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


class SalesforceSettings(BaseSettings):
    """Connected-app credentials for the Salesforce integration."""

    client_id: Optional[str] = Field(None, validation_alias="SFDC_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="SFDC_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(
        "http://localhost:8000/api/sfdc/callback",
        validation_alias="SFDC_REDIRECT_URI",
    )
    login_url: str = Field("https://login.salesforce.com", validation_alias="SFDC_LOGIN_URL")
    api_version: str = Field("v59.0", validation_alias="SFDC_API_VERSION")

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


class NotificationSettings(BaseSettings):
    """Email delivery settings for one-time passcodes."""

    resend_api_key: Optional[str] = Field(None, validation_alias="RESEND_API_KEY")
    from_email: str = Field("onboarding@resend.dev", validation_alias="RESEND_FROM_EMAIL")

    @property
    def is_configured(self) -> bool:
        return bool(self.resend_api_key)


class AWSSettings(BaseSettings):
    """Settings for the DynamoDB record store."""

    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    dynamodb_table_name: Optional[str] = Field(
        None,
        validation_alias="DYNAMODB_TABLE_NAME",
        description="When omitted, records are kept in process memory.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description="Secret used to derive the symmetric key for stored tokens.",
    )
    oauth_state_secret: Optional[str] = Field(
        None,
        validation_alias="OAUTH_STATE_SECRET",
        description="Secret used to sign OAuth state values.",
    )


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    google_scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "https://www.googleapis.com/auth/calendar.readonly",
            "https://www.googleapis.com/auth/spreadsheets",
        ),
        validation_alias="GOOGLE_OAUTH_SCOPES",
    )
    salesforce_scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        ("api", "refresh_token"),
        validation_alias="SFDC_OAUTH_SCOPES",
    )

    @field_validator("google_scopes", "salesforce_scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        return _split_csv(value)


class KPISettings(BaseSettings):
    """Location and targets of the shared KPI spreadsheet."""

    sheet_id: str = Field(
        "1pMyBWA_zOus3FLZifW3esAyGZPOZ3Qe70YGVXOTju0c", validation_alias="KPI_SHEET_ID"
    )
    sheet_tab: str = Field("Mtg", validation_alias="KPI_SHEET_TAB")
    meeting_target: int = Field(120, validation_alias="KPI_MEETING_TARGET")
    cxo_visit_target: int = Field(3, validation_alias="KPI_CXO_VISIT_TARGET")


class CalendarSettings(BaseSettings):
    """Which calendar events count as meetings."""

    meeting_keywords: Annotated[tuple[str, ...], NoDecode] = Field(
        ("meeting", "打ち合わせ"),
        validation_alias="CALENDAR_MEETING_KEYWORDS",
    )

    @field_validator("meeting_keywords", mode="before")
    @classmethod
    def _split_keywords(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        return _split_csv(value)


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    salesforce: SalesforceSettings = Field(default_factory=SalesforceSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)
    kpi: KPISettings = Field(default_factory=KPISettings)
    calendar: CalendarSettings = Field(default_factory=CalendarSettings)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "AWSSettings",
    "CalendarSettings",
    "GoogleSettings",
    "KPISettings",
    "NotificationSettings",
    "OAuthSettings",
    "SalesforceSettings",
    "SecuritySettings",
    "get_settings",
]
