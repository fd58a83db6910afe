"""Explicit tenant scope passed through resolver, store and manager calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class TenantContext:
    """The tenant group a request operates on; ``None`` means unscoped."""

    tenant_id: Optional[str] = None

    @property
    def is_scoped(self) -> bool:
        return self.tenant_id is not None


UNSCOPED = TenantContext()


def tenant_id_of(context: Optional[TenantContext]) -> Optional[str]:
    """Return the tenant id carried by ``context``, tolerating a missing context."""
    return context.tenant_id if context is not None else None


__all__ = ["TenantContext", "UNSCOPED", "tenant_id_of"]
