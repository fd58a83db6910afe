"""
Top-level orchestration of company connections.

The manager checks company ids against the resolver, runs the OAuth connect
and disconnect transactions, and hands out one API client per company.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple

import httpx

from quickbooks_hub.clients.oauth import QuickBooksOAuthClient
from quickbooks_hub.clients.quickbooks import QuickBooksClient
from quickbooks_hub.core.config import QuickBooksSettings
from quickbooks_hub.core.errors import AuthenticationError, CompanyNotFoundError
from quickbooks_hub.models import CompanyBinding, TenantContext, tenant_id_of
from quickbooks_hub.resolvers.base import CompanyResolver
from quickbooks_hub.services.companies import CompanyRepository
from quickbooks_hub.stores.base import TokenStore

logger = logging.getLogger(__name__)

_ClientKey = Tuple[Optional[str], str]


class QuickBooksManager:
    """Per-company lifecycle: unknown, known, connected, disconnected, reconnected."""

    def __init__(
        self,
        *,
        settings: QuickBooksSettings,
        resolver: CompanyResolver,
        token_store: TokenStore,
        oauth_client: QuickBooksOAuthClient,
        companies: CompanyRepository,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._resolver = resolver
        self._tokens = token_store
        self._oauth = oauth_client
        self._companies = companies
        self._transport = transport
        self._sleep = sleep
        self._clients: Dict[_ClientKey, QuickBooksClient] = {}

    @property
    def resolver(self) -> CompanyResolver:
        return self._resolver

    def client_for(
        self, company_id: str, *, context: Optional[TenantContext] = None
    ) -> QuickBooksClient:
        """Return the API client for a connected company."""
        self._ensure_company_known(company_id, context)

        key = (tenant_id_of(context), company_id)
        cached = self._clients.get(key)
        if cached is not None:
            return cached

        company = self._find_company(company_id, context)
        if not company.realm_id:
            raise AuthenticationError(
                "Company is not connected to QuickBooks.", company_id=company_id
            )

        client = QuickBooksClient(
            company_id,
            company.realm_id,
            company.environment or self._settings.environment,
            token_store=self._tokens,
            oauth_client=self._oauth,
            settings=self._settings,
            context=context,
            transport=self._transport,
            sleep=self._sleep,
        )
        self._clients[key] = client
        return client

    def default_client(self, *, context: Optional[TenantContext] = None) -> QuickBooksClient:
        default_company = self._settings.default_company
        if not default_company:
            raise CompanyNotFoundError("No default company configured.")
        return self.client_for(default_company, context=context)

    def authorization_url(
        self,
        company_id: str,
        scopes: Optional[Iterable[str]] = None,
        *,
        context: Optional[TenantContext] = None,
    ) -> str:
        self._ensure_company_known(company_id, context)
        return self._oauth.build_authorization_url(company_id, scopes)

    async def handle_callback(
        self,
        code: str,
        realm_id: str,
        state: str,
        *,
        context: Optional[TenantContext] = None,
    ) -> QuickBooksClient:
        """Complete the OAuth flow and mark the company connected."""
        company_id = self._oauth.extract_company_id(state)

        logger.info(
            "QuickBooks Manager: handling OAuth callback (company_id=%s, realm_id=%s)",
            company_id,
            realm_id,
        )

        # Network I/O stays outside the storage transaction.
        tokens = await self._oauth.exchange_code(code, realm_id)

        with self._companies.transaction():
            company = self._find_company(company_id, context)
            await self._tokens.put(company_id, tokens, context=context)
            self._companies.save(
                company.model_copy(
                    update={
                        "realm_id": realm_id,
                        "environment": self._settings.environment,
                        "connected_at": datetime.now(timezone.utc),
                        "disconnected_at": None,
                    }
                )
            )

        # A client memoized before a reconnect may point at the previous realm.
        self._clients.pop((tenant_id_of(context), company_id), None)

        logger.info(
            "QuickBooks Manager: company connected (company_id=%s, realm_id=%s)",
            company_id,
            realm_id,
        )
        return self.client_for(company_id, context=context)

    async def disconnect(
        self, company_id: str, *, context: Optional[TenantContext] = None
    ) -> None:
        """Revoke the company's tokens and mark it disconnected."""
        self._ensure_company_known(company_id, context)

        logger.info("QuickBooks Manager: disconnecting company %s", company_id)

        tokens = await self._tokens.get(company_id, context=context)
        if tokens is not None and tokens.refresh_token:
            revoked = await self._oauth.revoke_token(tokens.refresh_token)
            if not revoked:
                logger.warning(
                    "QuickBooks Manager: token revocation was not acknowledged for company %s",
                    company_id,
                )

        with self._companies.transaction():
            company = self._find_company(company_id, context)
            await self._tokens.forget(company_id, context=context)
            self._companies.save(
                company.model_copy(update={"disconnected_at": datetime.now(timezone.utc)})
            )

        self._clients.pop((tenant_id_of(context), company_id), None)

        logger.info("QuickBooks Manager: company disconnected (company_id=%s)", company_id)

    async def is_connected(
        self, company_id: str, *, context: Optional[TenantContext] = None
    ) -> bool:
        tokens = await self._tokens.get(company_id, context=context)
        if tokens is None:
            return False
        return not tokens.refresh_token_expired()

    async def connection_status(
        self, *, context: Optional[TenantContext] = None
    ) -> Dict[str, bool]:
        return {
            company_id: await self.is_connected(company_id, context=context)
            for company_id in self._resolver.all(context=context)
        }

    def all_clients(
        self, *, context: Optional[TenantContext] = None
    ) -> Dict[str, QuickBooksClient]:
        """Clients for every known company; companies that fail are logged and skipped."""
        clients: Dict[str, QuickBooksClient] = {}
        for company_id in self._resolver.all(context=context):
            try:
                clients[company_id] = self.client_for(company_id, context=context)
            except Exception as exc:
                logger.warning(
                    "QuickBooks Manager: skipping company %s during all_clients(): %s",
                    company_id,
                    exc,
                )
        return clients

    def _ensure_company_known(
        self, company_id: str, context: Optional[TenantContext]
    ) -> None:
        if not self._resolver.has(company_id, context=context):
            raise CompanyNotFoundError(
                f"Unknown QuickBooks company ID [{company_id}].", company_id=company_id
            )

    def _find_company(
        self, company_id: str, context: Optional[TenantContext]
    ) -> CompanyBinding:
        company = self._companies.find(company_id, tenant_id=tenant_id_of(context))
        if company is None:
            raise CompanyNotFoundError(
                f"Company record not found for [{company_id}].", company_id=company_id
            )
        return company


__all__ = ["QuickBooksManager"]
