"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_company_repository,
    get_company_resolver,
    get_database,
    get_manager,
    get_oauth_client,
    get_tenant_context,
    get_token_cipher_service,
    get_token_store,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_company_repository",
    "get_company_resolver",
    "get_database",
    "get_manager",
    "get_oauth_client",
    "get_tenant_context",
    "get_token_cipher_service",
    "get_token_store",
]
