"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class AuthorizationResponse(BaseModel):
    """Consent URL for a company that is starting the OAuth flow."""

    authorization_url: str = Field(..., description="Intuit consent screen URL with signed state.")


class ConnectionResponse(BaseModel):
    """Outcome of a connect or disconnect request."""

    status: str
    company_id: Optional[str] = None
    realm_id: Optional[str] = None


__all__ = ["AuthorizationResponse", "ConnectionResponse"]
