try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from quickbooks_hub.clients.oauth import QuickBooksOAuthClient
from quickbooks_hub.clients.sqlite_store import SQLiteDatabase
from quickbooks_hub.core.errors import (
    AuthenticationError,
    CompanyNotFoundError,
    InvalidStateError,
)
from quickbooks_hub.manager import QuickBooksManager
from quickbooks_hub.models import TenantContext
from quickbooks_hub.resolvers import ModelResolver
from quickbooks_hub.services.companies import SQLiteCompanyRepository
from quickbooks_hub.services.token_cipher import TokenCipherService
from quickbooks_hub.stores import DatabaseTokenStore, TenantDatabaseTokenStore


class IntuitStub:
    """Answers token and revoke calls the way Intuit does."""

    def __init__(self, settings) -> None:
        self._settings = settings
        self.token_requests: list[dict] = []
        self.revoked: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == self._settings.revoke_url:
            self.revoked.append(json.loads(request.content)["token"])
            return httpx.Response(200)
        form = {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
        self.token_requests.append(form)
        return httpx.Response(
            200,
            json={
                "access_token": f"access-for-{form.get('code', 'refresh')}",
                "refresh_token": "refresh-token",
                "expires_in": 3600,
                "x_refresh_token_expires_in": 8726400,
            },
        )


class FailingSaveRepository(SQLiteCompanyRepository):
    def save(self, binding) -> None:
        raise RuntimeError("disk full")


def _build(settings, *, tenant_store: bool = False, repository_cls=SQLiteCompanyRepository):
    database = SQLiteDatabase(settings.database_path)
    repository = repository_cls(database)
    store_cls = TenantDatabaseTokenStore if tenant_store else DatabaseTokenStore
    store = store_cls(database, cipher=TokenCipherService(secret="key"))
    intuit = IntuitStub(settings)
    oauth = QuickBooksOAuthClient(settings, transport=httpx.MockTransport(intuit))
    manager = QuickBooksManager(
        settings=settings,
        resolver=ModelResolver(repository),
        token_store=store,
        oauth_client=oauth,
        companies=repository,
    )
    return manager, repository, store, intuit


def _state_from(url: str) -> str:
    return parse_qs(urlsplit(url).query)["state"][0]


@pytest.mark.asyncio
async def test_callback_connects_company(settings) -> None:
    manager, repository, store, intuit = _build(settings)
    company = repository.register_source("organization", "17")
    state = _state_from(manager.authorization_url(company.company_id))

    client = await manager.handle_callback("auth-code", "realm-1", state)

    assert client.company_id == company.company_id
    assert client.realm_id == "realm-1"
    assert intuit.token_requests[0]["code"] == "auth-code"

    stored = await store.get(company.company_id)
    assert stored.access_token == "access-for-auth-code"
    assert stored.realm_id == "realm-1"

    binding = repository.find(company.company_id)
    assert binding.realm_id == "realm-1"
    assert binding.environment == settings.environment
    assert binding.connected_at is not None
    assert binding.disconnected_at is None
    assert await manager.is_connected(company.company_id)


@pytest.mark.asyncio
async def test_callback_with_forged_state_exchanges_nothing(settings) -> None:
    manager, repository, _, intuit = _build(settings)
    repository.register_source("organization", "17")

    with pytest.raises(InvalidStateError):
        await manager.handle_callback("auth-code", "realm-1", "forged.state")
    assert intuit.token_requests == []


@pytest.mark.asyncio
async def test_callback_for_unknown_company_stores_nothing(settings) -> None:
    manager, _, store, _ = _build(settings)
    state = QuickBooksOAuthClient(settings).build_authorization_url("ghost")

    with pytest.raises(CompanyNotFoundError):
        await manager.handle_callback("auth-code", "realm-1", _state_from(state))
    assert await store.get("ghost") is None


@pytest.mark.asyncio
async def test_failed_binding_update_rolls_back_tokens(settings) -> None:
    manager, repository, store, _ = _build(settings, repository_cls=FailingSaveRepository)
    company = SQLiteCompanyRepository(SQLiteDatabase(settings.database_path)).register_source(
        "organization", "17"
    )
    state = _state_from(manager.authorization_url(company.company_id))

    with pytest.raises(RuntimeError):
        await manager.handle_callback("auth-code", "realm-1", state)

    assert await store.get(company.company_id) is None
    assert repository.find(company.company_id).realm_id is None


@pytest.mark.asyncio
async def test_disconnect_revokes_and_clears_tokens(settings) -> None:
    manager, repository, store, intuit = _build(settings)
    company = repository.register_source("organization", "17")
    state = _state_from(manager.authorization_url(company.company_id))
    await manager.handle_callback("auth-code", "realm-1", state)

    await manager.disconnect(company.company_id)

    assert intuit.revoked == ["refresh-token"]
    assert await store.get(company.company_id) is None
    assert repository.find(company.company_id).disconnected_at is not None
    assert not await manager.is_connected(company.company_id)


@pytest.mark.asyncio
async def test_reconnect_after_disconnect(settings) -> None:
    manager, repository, _, _ = _build(settings)
    company = repository.register_source("organization", "17")
    await manager.handle_callback(
        "first", "realm-1", _state_from(manager.authorization_url(company.company_id))
    )
    await manager.disconnect(company.company_id)

    client = await manager.handle_callback(
        "second", "realm-2", _state_from(manager.authorization_url(company.company_id))
    )

    assert client.realm_id == "realm-2"
    assert repository.find(company.company_id).disconnected_at is None


@pytest.mark.asyncio
async def test_disconnect_unknown_company(settings) -> None:
    manager, _, _, intuit = _build(settings)

    with pytest.raises(CompanyNotFoundError):
        await manager.disconnect("ghost")
    assert intuit.revoked == []


def test_client_for_rejects_unknown_and_unconnected(settings) -> None:
    manager, repository, _, _ = _build(settings)
    pending = repository.register_source("organization", "17")

    with pytest.raises(CompanyNotFoundError):
        manager.client_for("ghost")
    with pytest.raises(AuthenticationError):
        manager.client_for(pending.company_id)


@pytest.mark.asyncio
async def test_client_for_is_memoized_per_tenant(settings) -> None:
    manager, repository, _, _ = _build(settings, tenant_store=True)
    tenant = TenantContext(tenant_id="tenant-a")
    company = repository.register_source("organization", "17", tenant_id="tenant-a")
    await manager.handle_callback(
        "code",
        "realm-1",
        _state_from(manager.authorization_url(company.company_id, context=tenant)),
        context=tenant,
    )

    assert manager.client_for(company.company_id, context=tenant) is manager.client_for(
        company.company_id, context=tenant
    )
    with pytest.raises(CompanyNotFoundError):
        manager.client_for(company.company_id, context=TenantContext(tenant_id="tenant-b"))


@pytest.mark.asyncio
async def test_status_and_all_clients_skip_unconnected(settings) -> None:
    manager, repository, _, _ = _build(settings)
    connected = repository.register_source("organization", "1")
    pending = repository.register_source("organization", "2")
    await manager.handle_callback(
        "code", "realm-1", _state_from(manager.authorization_url(connected.company_id))
    )

    assert await manager.connection_status() == {
        connected.company_id: True,
        pending.company_id: False,
    }
    assert list(manager.all_clients()) == [connected.company_id]


@pytest.mark.asyncio
async def test_all_clients_skips_unreadable_binding(settings) -> None:
    manager, repository, _, _ = _build(settings)
    broken = repository.register_source("organization", "1")
    healthy = repository.register_source("organization", "2")
    for company in (broken, healthy):
        await manager.handle_callback(
            "code", "realm-1", _state_from(manager.authorization_url(company.company_id))
        )
    manager._clients.clear()
    with SQLiteDatabase(settings.database_path).connection() as conn:
        conn.execute(
            "UPDATE quickbooks_companies SET environment = 'Production' WHERE company_id = ?",
            (broken.company_id,),
        )

    assert list(manager.all_clients()) == [healthy.company_id]


def test_default_client_requires_configuration(settings) -> None:
    manager, _, _, _ = _build(settings)

    with pytest.raises(CompanyNotFoundError):
        manager.default_client()


def test_authorization_url_rejects_unknown_company(settings) -> None:
    manager, _, _, _ = _build(settings)

    with pytest.raises(CompanyNotFoundError):
        manager.authorization_url("ghost")
