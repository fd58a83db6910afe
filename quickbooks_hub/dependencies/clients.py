"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Header

from quickbooks_hub.clients import QuickBooksOAuthClient, SQLiteDatabase
from quickbooks_hub.manager import QuickBooksManager
from quickbooks_hub.models import TenantContext
from quickbooks_hub.resolvers import CompanyResolver, create_resolver
from quickbooks_hub.services import SQLiteCompanyRepository, TokenCipherService
from quickbooks_hub.stores import TokenStore, create_token_store

from .config import get_app_settings


@lru_cache()
def get_database() -> SQLiteDatabase:
    """Provide the shared SQLite database."""
    return SQLiteDatabase(get_app_settings().database_path)


@lru_cache()
def get_company_repository() -> SQLiteCompanyRepository:
    return SQLiteCompanyRepository(get_database())


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    return TokenCipherService.from_settings(get_app_settings())


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the token store selected by configuration."""
    return create_token_store(
        get_app_settings(),
        database=get_database(),
        cipher=get_token_cipher_service(),
    )


@lru_cache()
def get_company_resolver() -> CompanyResolver:
    return create_resolver(get_app_settings(), repository=get_company_repository())


@lru_cache()
def get_oauth_client() -> QuickBooksOAuthClient:
    """Create a singleton QuickBooks OAuth client."""
    return QuickBooksOAuthClient(get_app_settings())


@lru_cache()
def get_manager() -> QuickBooksManager:
    """Provide the process-wide QuickBooks manager."""
    return QuickBooksManager(
        settings=get_app_settings(),
        resolver=get_company_resolver(),
        token_store=get_token_store(),
        oauth_client=get_oauth_client(),
        companies=get_company_repository(),
    )


def get_tenant_context(
    x_tenant_id: Optional[str] = Header(default=None, alias="X-Tenant-ID"),
) -> TenantContext:
    """Scope the request to the tenant group named in ``X-Tenant-ID``."""
    tenant_id = (x_tenant_id or "").strip() or None
    return TenantContext(tenant_id=tenant_id)


__all__ = [
    "get_company_repository",
    "get_company_resolver",
    "get_database",
    "get_manager",
    "get_oauth_client",
    "get_tenant_context",
    "get_token_cipher_service",
    "get_token_store",
]
