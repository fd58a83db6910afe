try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from quickbooks_hub.clients.oauth import QuickBooksOAuthClient
from quickbooks_hub.core.errors import AuthenticationError


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _token_payload(**overrides) -> dict:
    payload = {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "token_type": "bearer",
        "expires_in": 3600,
        "x_refresh_token_expires_in": 8726400,
    }
    payload.update(overrides)
    return payload


def _form(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def test_authorization_url_carries_signed_company_state(settings) -> None:
    oauth = QuickBooksOAuthClient(settings)

    url = oauth.build_authorization_url("company-1")
    parts = urlsplit(url)
    params = {key: values[0] for key, values in parse_qs(parts.query).items()}

    assert url.startswith(settings.authorize_url + "?")
    assert params["client_id"] == "client"
    assert params["response_type"] == "code"
    assert params["scope"] == "com.intuit.quickbooks.accounting"
    assert params["redirect_uri"] == settings.redirect_uri
    assert oauth.extract_company_id(params["state"]) == "company-1"


def test_authorization_urls_use_fresh_nonces(settings) -> None:
    oauth = QuickBooksOAuthClient(settings)

    first = oauth.build_authorization_url("company-1")
    second = oauth.build_authorization_url("company-1")

    assert first != second


def test_authorization_url_accepts_explicit_scopes(settings) -> None:
    oauth = QuickBooksOAuthClient(settings)

    url = oauth.build_authorization_url("company-1", scopes=["openid", "email"])

    assert parse_qs(urlsplit(url).query)["scope"] == ["openid email"]


@pytest.mark.asyncio
async def test_exchange_code_normalizes_token_response(settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_token_payload())

    oauth = QuickBooksOAuthClient(settings, transport=httpx.MockTransport(handler))
    before = datetime.now(timezone.utc)

    tokens = await oauth.exchange_code("auth-code", "realm-9")

    assert tokens.access_token == "access-1"
    assert tokens.refresh_token == "refresh-1"
    assert tokens.realm_id == "realm-9"
    assert tokens.access_token_expires_at >= before + timedelta(seconds=3600)
    assert tokens.refresh_token_expires_at >= before + timedelta(seconds=8726400)

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == settings.token_url
    assert request.headers["authorization"].startswith("Basic ")
    assert _form(request) == {
        "grant_type": "authorization_code",
        "code": "auth-code",
        "redirect_uri": settings.redirect_uri,
    }


@pytest.mark.asyncio
async def test_missing_expiry_fields_are_left_unknown(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json=_token_payload(expires_in=0, x_refresh_token_expires_in=None)
        )

    oauth = QuickBooksOAuthClient(settings, transport=httpx.MockTransport(handler))

    tokens = await oauth.exchange_code("auth-code", "realm-9")

    assert tokens.access_token_expires_at is None
    assert tokens.refresh_token_expires_at is None


@pytest.mark.asyncio
async def test_refresh_token_sends_refresh_grant(settings) -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(_form(request))
        return httpx.Response(200, json=_token_payload(access_token="access-2"))

    oauth = QuickBooksOAuthClient(settings, transport=httpx.MockTransport(handler))

    tokens = await oauth.refresh_token("refresh-1", "realm-9")

    assert tokens.access_token == "access-2"
    assert seen == [{"grant_type": "refresh_token", "refresh_token": "refresh-1"}]


@pytest.mark.asyncio
async def test_rejected_exchange_raises_with_status(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    oauth = QuickBooksOAuthClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(AuthenticationError) as excinfo:
        await oauth.exchange_code("bad-code", "realm-9")
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"access_token": "only-access"}),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
async def test_unusable_token_response_raises(settings, response: httpx.Response) -> None:
    oauth = QuickBooksOAuthClient(settings, transport=httpx.MockTransport(lambda request: response))

    with pytest.raises(AuthenticationError):
        await oauth.refresh_token("refresh-1")


@pytest.mark.asyncio
async def test_token_request_retries_transient_status(settings) -> None:
    statuses = iter([503, 200])
    sleep = RecordingSleep()

    def handler(request: httpx.Request) -> httpx.Response:
        status = next(statuses)
        if status == 200:
            return httpx.Response(200, json=_token_payload())
        return httpx.Response(status)

    oauth = QuickBooksOAuthClient(settings, transport=httpx.MockTransport(handler), sleep=sleep)

    tokens = await oauth.exchange_code("auth-code", "realm-9")

    assert tokens.access_token == "access-1"
    assert sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_transport_failure_raises_authentication_error(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    oauth = QuickBooksOAuthClient(
        settings.model_copy(update={"retry_times": 0}),
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(AuthenticationError):
        await oauth.exchange_code("auth-code", "realm-9")


@pytest.mark.asyncio
async def test_revoke_token_reports_outcome(settings) -> None:
    bodies: list[dict] = []
    statuses = iter([200, 400])

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        assert str(request.url) == settings.revoke_url
        return httpx.Response(next(statuses))

    oauth = QuickBooksOAuthClient(settings, transport=httpx.MockTransport(handler))

    assert await oauth.revoke_token("refresh-1") is True
    assert await oauth.revoke_token("refresh-1") is False
    assert bodies == [{"token": "refresh-1"}, {"token": "refresh-1"}]
