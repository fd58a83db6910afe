"""
Application configuration models and helpers.

Centralizes settings management so the manager, the token stores, the company
resolvers and the FastAPI app share a consistent configuration surface.
"""

from __future__ import annotations

import json
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, Dict, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

AUTHORIZE_URL = "https://appcenter.intuit.com/connect/oauth2"
TOKEN_URL = "https://oauth.platform.intuit.com/oauth2/v1/tokens/bearer"
REVOKE_URL = "https://developer.api.intuit.com/v2/oauth2/tokens/revoke"
API_BASE_PRODUCTION = "https://quickbooks.api.intuit.com/v3/company/{realmId}/"
API_BASE_SANDBOX = "https://sandbox-quickbooks.api.intuit.com/v3/company/{realmId}/"


class TokenStoreDriver(str, Enum):
    """Backends available for persisting company token sets."""

    DATABASE = "database"
    TENANT_DATABASE = "tenant_database"
    CACHE = "cache"


class ResolverDriver(str, Enum):
    """Strategies deciding which company identifiers are known."""

    STATIC = "static"
    ENV = "env"
    MODEL = "model"
    CHAIN = "chain"


class CacheBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class QuickBooksSettings(BaseSettings):
    """Root settings object for the QuickBooks connection hub."""

    client_id: str = Field(..., description="OAuth client identifier issued by Intuit.")
    client_secret: str = Field(..., description="OAuth client secret; also signs state tokens.")
    redirect_uri: str = Field(..., description="Callback URL registered with Intuit.")
    environment: Literal["production", "sandbox"] = "production"

    token_store: TokenStoreDriver = TokenStoreDriver.DATABASE
    database_path: str = "data/quickbooks.db"
    cache_store: CacheBackend = CacheBackend.MEMORY
    redis_url: str = "redis://localhost:6379"
    cache_prefix: str = "quickbooks_tokens"
    token_encryption_secret: Optional[str] = Field(
        None,
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens. "
            "Defaults to the client secret when omitted."
        ),
    )
    token_encryption_previous_secrets: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Retired encryption secrets that may still open stored tokens.",
    )

    default_company: Optional[str] = None

    timeout: float = Field(30.0, description="Per-request HTTP timeout in seconds.")
    retry_times: int = Field(
        3,
        ge=0,
        description="Maximum number of retries, not counting the first request.",
    )
    retry_sleep: int = Field(
        1000,
        ge=0,
        description="Base delay in milliseconds between retries; doubles each attempt.",
    )

    company_resolver: ResolverDriver = ResolverDriver.MODEL
    companies: Annotated[list[str], NoDecode] = Field(default_factory=list)
    chain_resolvers: Annotated[list[ResolverDriver], NoDecode] = Field(
        default_factory=lambda: [ResolverDriver.ENV, ResolverDriver.MODEL]
    )
    company_conditions: Dict[str, Any] = Field(
        default_factory=dict,
        description="Static column filters applied by the record-backed resolver.",
    )

    authorize_url: str = AUTHORIZE_URL
    token_url: str = TOKEN_URL
    revoke_url: str = REVOKE_URL
    scopes: Annotated[tuple[str, ...], NoDecode] = ("com.intuit.quickbooks.accounting",)
    api_base_production: str = API_BASE_PRODUCTION
    api_base_sandbox: str = API_BASE_SANDBOX

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUICKBOOKS_",
        extra="ignore",
    )

    @field_validator(
        "companies", "chain_resolvers", "token_encryption_previous_secrets", mode="before"
    )
    @classmethod
    def _split_lists(cls, value: Any) -> Any:
        """Support providing lists as comma-separated strings."""
        return _split_csv(value)

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(_split_csv(value))
        if isinstance(value, list):
            return tuple(value)
        return value

    @field_validator("company_conditions", mode="before")
    @classmethod
    def _parse_conditions(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value) if value.strip() else {}
        return value

    def api_base(self, environment: str) -> str:
        """Return the business API base URL template for ``environment``."""
        if environment == "sandbox":
            return self.api_base_sandbox
        return self.api_base_production

    @property
    def encryption_secret(self) -> str:
        return self.token_encryption_secret or self.client_secret


@lru_cache()
def get_settings() -> QuickBooksSettings:
    """Return a cached settings object."""
    return QuickBooksSettings()  # type: ignore[call-arg]


__all__ = [
    "CacheBackend",
    "QuickBooksSettings",
    "ResolverDriver",
    "TokenStoreDriver",
    "get_settings",
]
