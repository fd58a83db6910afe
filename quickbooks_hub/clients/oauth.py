"""
QuickBooks OAuth utilities.

These helpers manage the authorization-code flow, the token refresh lifecycle
and the signed state values that carry a company id across the redirect.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import hmac
import json
import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from hashlib import sha256
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional
from urllib.parse import urlencode

import httpx

from quickbooks_hub.core.config import QuickBooksSettings
from quickbooks_hub.core.errors import (
    AuthenticationError,
    InvalidStateError,
    InvalidStateSignatureError,
    MissingCompanyIdError,
)
from quickbooks_hub.models import TokenSet
from quickbooks_hub.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering.

    A state is ``<base64url(json payload)>.<hex HMAC-SHA256 of the first part>``.
    """

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def _sign(self, encoded: str) -> str:
        return hmac.new(self._secret_key, encoded.encode("ascii"), sha256).hexdigest()

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"))
        encoded = _b64url_encode(serialized.encode("utf-8"))
        return f"{encoded}.{self._sign(encoded)}"

    def decode(self, token: str) -> Dict[str, Any]:
        encoded, sep, signature = token.partition(".")
        if not sep or not signature:
            raise InvalidStateError("Invalid OAuth state.")

        try:
            expected = self._sign(encoded)
        except UnicodeEncodeError as exc:
            raise InvalidStateError("Invalid OAuth state.") from exc

        if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
            raise InvalidStateSignatureError("Invalid OAuth state signature.")

        try:
            data = json.loads(_b64url_decode(encoded))
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise InvalidStateError("Invalid OAuth state.") from exc

        if not isinstance(data, dict):
            raise InvalidStateError("Invalid OAuth state.")
        return data

    def extract_company_id(self, token: str) -> str:
        data = self.decode(token)
        company_id = data.get("company_id")
        if not company_id:
            raise MissingCompanyIdError("Missing company ID in OAuth state.")
        return str(company_id)


class QuickBooksOAuthClient:
    """Build Intuit authorization URLs and exchange, refresh and revoke tokens."""

    def __init__(
        self,
        settings: QuickBooksSettings,
        *,
        state_encoder: Optional[OAuthStateEncoder] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._state = state_encoder or OAuthStateEncoder(settings.client_secret)
        self._transport = transport
        self._sleep = sleep
        self._retry = RetryConfig(
            attempts=settings.retry_times, backoff_ms=settings.retry_sleep
        )

    @property
    def state_encoder(self) -> OAuthStateEncoder:
        return self._state

    def build_authorization_url(
        self,
        company_id: str,
        scopes: Optional[Iterable[str]] = None,
        state: Optional[str] = None,
        extra_params: Optional[Dict[str, str]] = None,
    ) -> str:
        """Construct the Intuit consent URL for ``company_id``."""
        if not state:
            state = self._state.encode(
                {
                    "company_id": company_id,
                    "nonce": secrets.token_urlsafe(16),
                    "issued_at": int(time.time()),
                }
            )

        params = {
            "client_id": self._settings.client_id,
            "response_type": "code",
            "scope": " ".join(scopes or self._settings.scopes),
            "redirect_uri": self._settings.redirect_uri,
            "state": state,
        }
        params.update(extra_params or {})
        return f"{self._settings.authorize_url.rstrip('?')}?{urlencode(params)}"

    def extract_company_id(self, state: str) -> str:
        return self._state.extract_company_id(state)

    async def exchange_code(self, code: str, realm_id: str) -> TokenSet:
        """Exchange an authorization code for a token set."""
        logger.info("QuickBooks OAuth: exchanging authorization code (realm_id=%s)", realm_id)

        payload = await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._settings.redirect_uri,
            }
        )
        tokens = self._normalize_token_response(payload, realm_id)

        logger.info("QuickBooks OAuth: token exchange successful (realm_id=%s)", realm_id)
        return tokens

    async def refresh_token(self, refresh_token: str, realm_id: Optional[str] = None) -> TokenSet:
        """Trade a refresh token for a new token set."""
        logger.info("QuickBooks OAuth: refreshing access token (realm_id=%s)", realm_id)

        payload = await self._token_request(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
        )
        tokens = self._normalize_token_response(payload, realm_id)

        logger.info("QuickBooks OAuth: token refresh successful (realm_id=%s)", realm_id)
        return tokens

    async def revoke_token(self, refresh_token: str) -> bool:
        """Revoke a refresh token; returns whether Intuit answered with 2xx."""
        logger.info("QuickBooks OAuth: revoking token")

        try:
            async with self._http_client() as client:
                response = await request_with_retry(
                    client.post,
                    self._settings.revoke_url,
                    json={"token": refresh_token},
                    auth=(self._settings.client_id, self._settings.client_secret),
                    headers={"Accept": "application/json"},
                    retry_config=self._retry,
                    label="QuickBooks OAuth revoke",
                    sleep=self._sleep,
                )
        except httpx.HTTPError as exc:
            logger.error("QuickBooks OAuth: failed to revoke token: %s", exc)
            raise AuthenticationError(f"Failed to revoke token: {exc}") from exc

        success = response.is_success
        logger.info(
            "QuickBooks OAuth: token revocation completed (success=%s, status=%d)",
            success,
            response.status_code,
        )
        return success

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._settings.timeout, transport=self._transport)

    async def _token_request(self, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            async with self._http_client() as client:
                response = await request_with_retry(
                    client.post,
                    self._settings.token_url,
                    data=params,
                    auth=(self._settings.client_id, self._settings.client_secret),
                    headers={"Accept": "application/json"},
                    retry_config=self._retry,
                    label="QuickBooks OAuth token",
                    sleep=self._sleep,
                )
        except httpx.HTTPError as exc:
            logger.error("QuickBooks OAuth: token request failed: %s", exc)
            raise AuthenticationError(f"OAuth token request failed: {exc}") from exc

        if not response.is_success:
            logger.error(
                "QuickBooks OAuth: token request failed with status %d", response.status_code
            )
            raise AuthenticationError(
                f"OAuth token request failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError("Invalid OAuth token response.") from exc

        if not isinstance(payload, dict):
            raise AuthenticationError("Invalid OAuth token response.")
        return payload

    @staticmethod
    def _normalize_token_response(payload: Dict[str, Any], realm_id: Optional[str]) -> TokenSet:
        access_token = payload.get("access_token")
        refresh_token = payload.get("refresh_token")
        if not access_token or not refresh_token:
            raise AuthenticationError("OAuth response missing access or refresh token.")

        now = datetime.now(timezone.utc)

        def _expiry(field: str) -> Optional[datetime]:
            try:
                seconds = int(payload.get(field) or 0)
            except (TypeError, ValueError):
                seconds = 0
            return now + timedelta(seconds=seconds) if seconds > 0 else None

        return TokenSet(
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_expires_at=_expiry("expires_in"),
            refresh_token_expires_at=_expiry("x_refresh_token_expires_in"),
            realm_id=realm_id,
        )


__all__ = ["OAuthStateEncoder", "QuickBooksOAuthClient"]
