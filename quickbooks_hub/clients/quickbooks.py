"""Per-company QuickBooks Online API client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from quickbooks_hub.clients.oauth import QuickBooksOAuthClient
from quickbooks_hub.clients.resources import (
    Account,
    Bill,
    CreditMemo,
    Customer,
    Employee,
    Estimate,
    Invoice,
    Payment,
    PurchaseOrder,
    Vendor,
)
from quickbooks_hub.core.config import QuickBooksSettings
from quickbooks_hub.core.errors import ApiError, AuthenticationError, RateLimitError
from quickbooks_hub.models import TenantContext, TokenSet
from quickbooks_hub.stores.base import TokenStore
from quickbooks_hub.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


class QuickBooksClient:
    """API facade bound to one ``(company_id, realm_id, environment)`` triple.

    Tokens loaded from the store are cached on the instance for the rest of
    its life; build one client per request or session when sharing across
    threads is not synchronized separately.
    """

    def __init__(
        self,
        company_id: str,
        realm_id: str,
        environment: str,
        *,
        token_store: TokenStore,
        oauth_client: QuickBooksOAuthClient,
        settings: QuickBooksSettings,
        context: Optional[TenantContext] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._company_id = company_id
        self._realm_id = realm_id
        self._environment = environment
        self._tokens = token_store
        self._oauth = oauth_client
        self._settings = settings
        self._context = context
        self._transport = transport
        self._sleep = sleep
        self._retry = RetryConfig(attempts=settings.retry_times, backoff_ms=settings.retry_sleep)
        self._current_tokens: Optional[TokenSet] = None

    @property
    def company_id(self) -> str:
        return self._company_id

    @property
    def realm_id(self) -> str:
        return self._realm_id

    @property
    def environment(self) -> str:
        return self._environment

    def invoices(self) -> Invoice:
        return Invoice(self)

    def customers(self) -> Customer:
        return Customer(self)

    def payments(self) -> Payment:
        return Payment(self)

    def accounts(self) -> Account:
        return Account(self)

    def vendors(self) -> Vendor:
        return Vendor(self)

    def bills(self) -> Bill:
        return Bill(self)

    def purchase_orders(self) -> PurchaseOrder:
        return PurchaseOrder(self)

    def estimates(self) -> Estimate:
        return Estimate(self)

    def credit_memos(self) -> CreditMemo:
        return CreditMemo(self)

    def employees(self) -> Employee:
        return Employee(self)

    async def query(self, query: str) -> Dict[str, Any]:
        """Run a QuickBooks query statement; the text is sent as-is."""
        return await self.request("POST", "query", params={"query": query})

    async def get(self, uri: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("GET", uri, params=params)

    async def post(self, uri: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("POST", uri, json=payload or {})

    async def request(
        self,
        method: str,
        uri: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Send an authenticated request and decode the JSON body."""
        tokens = await self.ensure_fresh_token()
        url = self.build_url(uri)

        request_headers = dict(headers or {})
        request_headers["Authorization"] = f"Bearer {tokens.access_token}"
        request_headers["Accept"] = "application/json"

        logger.debug(
            "QuickBooks API: sending %s %s (company_id=%s)", method, url, self._company_id
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout, transport=self._transport
            ) as client:
                response = await request_with_retry(
                    client.request,
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=request_headers,
                    retry_config=self._retry,
                    label="QuickBooks API",
                    sleep=self._sleep,
                )
        except httpx.HTTPError as exc:
            logger.error(
                "QuickBooks API: %s %s failed for company %s: %s",
                method,
                url,
                self._company_id,
                exc,
            )
            raise ApiError(
                f"QuickBooks API request failed: {exc}", company_id=self._company_id
            ) from exc

        if not response.is_success:
            self._raise_for_status(method, url, response)

        logger.debug(
            "QuickBooks API: %s %s succeeded with status %d",
            method,
            url,
            response.status_code,
        )

        try:
            decoded = response.json()
        except ValueError:
            decoded = None
        return decoded if isinstance(decoded, dict) else {"raw": response.text}

    def _raise_for_status(self, method: str, url: str, response: httpx.Response) -> None:
        status_code = response.status_code
        logger.error(
            "QuickBooks API: %s %s returned status %d for company %s",
            method,
            url,
            status_code,
            self._company_id,
        )
        if status_code in (401, 403):
            raise AuthenticationError(
                "QuickBooks authentication failed.",
                company_id=self._company_id,
                status_code=status_code,
            )
        if status_code == 429:
            raise RateLimitError(
                "QuickBooks rate limit exceeded.",
                status_code=status_code,
                company_id=self._company_id,
                body=response.text,
            )
        raise ApiError(
            f"QuickBooks API request failed with status {status_code}.",
            status_code=status_code,
            company_id=self._company_id,
            body=response.text,
        )

    async def get_tokens(self) -> TokenSet:
        return await self.ensure_fresh_token()

    async def ensure_fresh_token(self) -> TokenSet:
        """Return a usable token set, refreshing an expired access token first."""
        current = self._current_tokens
        if current is not None and not current.access_token_expired():
            return current

        tokens = await self._tokens.get(self._company_id, context=self._context)
        if tokens is None:
            raise AuthenticationError(
                "No tokens found for this company.", company_id=self._company_id
            )

        if tokens.access_token_expired():
            if tokens.refresh_token_expired():
                raise AuthenticationError(
                    "Refresh token expired. Re-authorize required.",
                    company_id=self._company_id,
                )
            if not tokens.refresh_token:
                raise AuthenticationError(
                    "Refresh token is missing. Re-authorize required.",
                    company_id=self._company_id,
                )

            logger.info(
                "QuickBooks Client: access token expired, refreshing (company_id=%s)",
                self._company_id,
            )
            refreshed = await self._oauth.refresh_token(tokens.refresh_token, self._realm_id)
            await self._tokens.put(self._company_id, refreshed, context=self._context)
            tokens = tokens.model_copy(update=refreshed.model_dump())

        self._current_tokens = tokens
        return tokens

    def build_url(self, uri: str) -> str:
        base = self._settings.api_base(self._environment).replace("{realmId}", self._realm_id)
        return f"{base.rstrip('/')}/{uri.lstrip('/')}"


__all__ = ["QuickBooksClient"]
