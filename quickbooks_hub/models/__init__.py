"""Domain model exports."""

from .company import CompanyBinding
from .tenant import UNSCOPED, TenantContext, tenant_id_of
from .tokens import TokenSet, parse_datetime

__all__ = [
    "CompanyBinding",
    "TenantContext",
    "TokenSet",
    "UNSCOPED",
    "parse_datetime",
    "tenant_id_of",
]
