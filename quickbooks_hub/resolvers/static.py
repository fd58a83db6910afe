"""Resolver over a fixed list of company ids."""

from __future__ import annotations

from typing import Iterable, List, Optional

from quickbooks_hub.models import TenantContext
from quickbooks_hub.resolvers.base import CompanyResolver, unique_ids


class StaticResolver(CompanyResolver):
    def __init__(self, companies: Iterable[str] = ()) -> None:
        self._companies = unique_ids(companies)

    def all(self, *, context: Optional[TenantContext] = None) -> List[str]:
        return list(self._companies)


__all__ = ["StaticResolver"]
