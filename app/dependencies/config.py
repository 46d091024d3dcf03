"""
FastAPI dependency for injecting application settings.
"""

from app.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning the process-wide settings.

    Tests override this dependency to switch individual integrations between
    configured and development mode.
    """
    return get_settings()


__all__ = ["get_app_settings"]
