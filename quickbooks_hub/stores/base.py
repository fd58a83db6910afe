"""Token store interface shared by every persistence backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from quickbooks_hub.models import TenantContext, TokenSet


class TokenStore(ABC):
    """Durable mapping from company id to its current token set.

    Every method accepts the caller's :class:`TenantContext`; backends that do
    not scope by tenant ignore it.
    """

    @abstractmethod
    async def get(
        self, company_id: str, *, context: Optional[TenantContext] = None
    ) -> Optional[TokenSet]:
        """Return the stored token set, or None."""

    @abstractmethod
    async def put(
        self, company_id: str, tokens: TokenSet, *, context: Optional[TenantContext] = None
    ) -> None:
        """Insert or replace the token set for ``company_id``."""

    @abstractmethod
    async def forget(self, company_id: str, *, context: Optional[TenantContext] = None) -> None:
        """Remove any token set for ``company_id``."""

    @abstractmethod
    async def has(self, company_id: str, *, context: Optional[TenantContext] = None) -> bool:
        """Whether a token set exists for ``company_id``."""


__all__ = ["TokenStore"]
