"""Build the configured token store backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from quickbooks_hub.clients.sqlite_store import SQLiteDatabase
from quickbooks_hub.core.config import CacheBackend, QuickBooksSettings, TokenStoreDriver
from quickbooks_hub.core.errors import ConfigurationError
from quickbooks_hub.services.token_cipher import TokenCipherService
from quickbooks_hub.stores.base import TokenStore
from quickbooks_hub.stores.cache import CacheTokenStore
from quickbooks_hub.stores.database import DatabaseTokenStore, TenantDatabaseTokenStore

if TYPE_CHECKING:
    from key_value.aio.protocols.key_value import AsyncKeyValue

logger = logging.getLogger(__name__)


def create_cache(settings: QuickBooksSettings) -> "AsyncKeyValue":
    """Create the key/value backend selected by ``cache_store``.

    - ``memory``: in-process storage, suitable for tests and single workers.
    - ``redis``: shared storage for multi-worker deployments.
    """
    backend = CacheBackend(settings.cache_store)
    logger.info("Creating token cache backend: type=%s", backend.value)

    if backend is CacheBackend.MEMORY:
        from key_value.aio.stores.memory import MemoryStore

        return MemoryStore()

    from key_value.aio.stores.redis import RedisStore

    return RedisStore(url=settings.redis_url)


def create_token_store(
    settings: QuickBooksSettings,
    *,
    driver: Optional[str] = None,
    database: Optional[SQLiteDatabase] = None,
    cipher: Optional[TokenCipherService] = None,
    cache: Optional["AsyncKeyValue"] = None,
) -> TokenStore:
    """Return the token store for ``driver`` (defaults to ``settings.token_store``)."""
    try:
        selected = TokenStoreDriver(driver or settings.token_store)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown token store driver [{driver}].") from exc

    if selected is TokenStoreDriver.CACHE:
        return CacheTokenStore(cache or create_cache(settings), prefix=settings.cache_prefix)

    database = database or SQLiteDatabase(settings.database_path)
    cipher = cipher or TokenCipherService.from_settings(settings)
    if selected is TokenStoreDriver.TENANT_DATABASE:
        return TenantDatabaseTokenStore(database, cipher=cipher)
    return DatabaseTokenStore(database, cipher=cipher)


__all__ = ["create_cache", "create_token_store"]
