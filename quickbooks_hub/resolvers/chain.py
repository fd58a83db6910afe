"""Resolver combining several strategies in order."""

from __future__ import annotations

from itertools import chain
from typing import List, Optional, Sequence

from quickbooks_hub.models import TenantContext
from quickbooks_hub.resolvers.base import CompanyResolver, unique_ids


class ChainResolver(CompanyResolver):
    """``all`` is the de-duplicated union; ``has`` stops at the first member that knows the id."""

    def __init__(self, resolvers: Sequence[CompanyResolver]) -> None:
        self._resolvers = list(resolvers)

    @property
    def resolvers(self) -> List[CompanyResolver]:
        return list(self._resolvers)

    def all(self, *, context: Optional[TenantContext] = None) -> List[str]:
        return unique_ids(
            chain.from_iterable(resolver.all(context=context) for resolver in self._resolvers)
        )

    def has(self, company_id: str, *, context: Optional[TenantContext] = None) -> bool:
        return any(resolver.has(company_id, context=context) for resolver in self._resolvers)


__all__ = ["ChainResolver"]
