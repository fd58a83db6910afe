"""Token store backends."""

from .base import TokenStore
from .cache import CacheTokenStore, ttl_for
from .database import DatabaseTokenStore, TenantDatabaseTokenStore
from .factory import create_cache, create_token_store

__all__ = [
    "CacheTokenStore",
    "DatabaseTokenStore",
    "TenantDatabaseTokenStore",
    "TokenStore",
    "create_cache",
    "create_token_store",
    "ttl_for",
]
