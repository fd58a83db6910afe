"""Resolver backed by stored company binding records."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from quickbooks_hub.models import TenantContext, tenant_id_of
from quickbooks_hub.resolvers.base import CompanyResolver, unique_ids
from quickbooks_hub.services.companies import CompanyRepository


class ModelResolver(CompanyResolver):
    """Known companies are the bindings visible to the active tenant.

    ``conditions`` are fixed column filters (for example ``{"is_active": True}``)
    applied on top of the tenant filter.
    """

    def __init__(
        self,
        repository: CompanyRepository,
        *,
        conditions: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._repository = repository
        self._conditions = dict(conditions or {})

    def all(self, *, context: Optional[TenantContext] = None) -> List[str]:
        return unique_ids(
            self._repository.list_company_ids(
                tenant_id=tenant_id_of(context), conditions=self._conditions
            )
        )

    def has(self, company_id: str, *, context: Optional[TenantContext] = None) -> bool:
        if self._conditions:
            return super().has(company_id, context=context)
        return self._repository.find(company_id, tenant_id=tenant_id_of(context)) is not None


__all__ = ["ModelResolver"]
