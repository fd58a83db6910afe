"""Token store backed by a key/value cache with per-entry expiry."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from quickbooks_hub.models import TenantContext, TokenSet
from quickbooks_hub.stores.base import TokenStore

if TYPE_CHECKING:
    from key_value.aio.protocols.key_value import AsyncKeyValue

logger = logging.getLogger(__name__)


def ttl_for(tokens: TokenSet, now: Optional[datetime] = None) -> Optional[int]:
    """Seconds until the refresh token expires, or None when unknown or already past.

    The entry lives as long as the refresh token rather than the access token;
    an expired access token is refreshed when the entry is read.
    """
    expires_at = tokens.refresh_token_expires_at
    if expires_at is None:
        return None
    ttl = int((expires_at - (now or datetime.now(timezone.utc))).total_seconds())
    return ttl if ttl > 0 else None


class CacheTokenStore(TokenStore):
    """Store token sets under ``<prefix>:<company_id>`` in an async key/value backend."""

    def __init__(self, cache: "AsyncKeyValue", *, prefix: str = "quickbooks_tokens") -> None:
        self._cache = cache
        self._prefix = prefix

    def key(self, company_id: str) -> str:
        return f"{self._prefix}:{company_id}"

    async def get(
        self, company_id: str, *, context: Optional[TenantContext] = None
    ) -> Optional[TokenSet]:
        value = await self._cache.get(self.key(company_id))
        tokens = TokenSet.from_record(value)
        if value is not None and tokens is None:
            logger.warning("Ignoring malformed cached token set for company %s", company_id)
        return tokens

    async def put(
        self, company_id: str, tokens: TokenSet, *, context: Optional[TenantContext] = None
    ) -> None:
        # No known expiry falls back to storing indefinitely, until forget().
        await self._cache.put(self.key(company_id), tokens.to_record(), ttl=ttl_for(tokens))

    async def forget(self, company_id: str, *, context: Optional[TenantContext] = None) -> None:
        await self._cache.delete(self.key(company_id))

    async def has(self, company_id: str, *, context: Optional[TenantContext] = None) -> bool:
        return await self._cache.get(self.key(company_id)) is not None


__all__ = ["CacheTokenStore", "ttl_for"]
