"""
FastAPI dependency returning the process settings.
"""

from quickbooks_hub.core.config import QuickBooksSettings, get_settings


def get_app_settings() -> QuickBooksSettings:
    """Settings shared by every dependency factory; tests override this."""
    return get_settings()


__all__ = ["get_app_settings"]
