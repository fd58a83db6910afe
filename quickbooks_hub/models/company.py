"""Company binding records linking a caller-side company to a QuickBooks realm."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class CompanyBinding(BaseModel):
    """Represents a row of the ``quickbooks_companies`` table."""

    company_id: str = Field(..., description="Caller-assigned identifier, usually a UUID.")
    tenant_id: Optional[str] = Field(None, description="Owning tenant group, if any.")
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    display_name: Optional[str] = None
    realm_id: Optional[str] = Field(None, description="Set once the OAuth callback succeeds.")
    environment: Literal["production", "sandbox"] = "production"
    is_active: bool = True
    connected_at: Optional[datetime] = None
    disconnected_at: Optional[datetime] = None

    @property
    def is_connected(self) -> bool:
        return bool(self.realm_id) and self.disconnected_at is None


__all__ = ["CompanyBinding"]
