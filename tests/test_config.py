try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest
from pydantic import ValidationError

from quickbooks_hub.core.config import QuickBooksSettings, ResolverDriver, TokenStoreDriver


def _load() -> QuickBooksSettings:
    return QuickBooksSettings(_env_file=None)  # type: ignore[call-arg]


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUICKBOOKS_COMPANIES", "a, b,,c")
    monkeypatch.setenv("QUICKBOOKS_CHAIN_RESOLVERS", "static,model")
    monkeypatch.setenv("QUICKBOOKS_SCOPES", "com.intuit.quickbooks.accounting,openid")
    monkeypatch.setenv("QUICKBOOKS_COMPANY_CONDITIONS", '{"is_active": true}')
    monkeypatch.setenv("QUICKBOOKS_TOKEN_STORE", "tenant_database")
    monkeypatch.setenv("QUICKBOOKS_RETRY_TIMES", "5")
    monkeypatch.setenv("QUICKBOOKS_TOKEN_ENCRYPTION_PREVIOUS_SECRETS", "2023-key, 2024-key")

    settings = _load()

    assert settings.client_id == "test-client-id"
    assert settings.companies == ["a", "b", "c"]
    assert settings.chain_resolvers == [ResolverDriver.STATIC, ResolverDriver.MODEL]
    assert settings.scopes == ("com.intuit.quickbooks.accounting", "openid")
    assert settings.company_conditions == {"is_active": True}
    assert settings.token_store is TokenStoreDriver.TENANT_DATABASE
    assert settings.retry_times == 5
    assert settings.token_encryption_previous_secrets == ["2023-key", "2024-key"]


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("QUICKBOOKS_ENVIRONMENT", "QUICKBOOKS_TOKEN_STORE", "QUICKBOOKS_COMPANY_RESOLVER"):
        monkeypatch.delenv(name, raising=False)

    settings = _load()

    assert settings.environment == "production"
    assert settings.token_store is TokenStoreDriver.DATABASE
    assert settings.company_resolver is ResolverDriver.MODEL
    assert (settings.timeout, settings.retry_times, settings.retry_sleep) == (30.0, 3, 1000)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("QUICKBOOKS_TOKEN_STORE", "filesystem"),
        ("QUICKBOOKS_COMPANY_RESOLVER", "ldap"),
        ("QUICKBOOKS_ENVIRONMENT", "staging"),
    ],
)
def test_invalid_drivers_fail_at_startup(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        _load()


def test_api_base_and_encryption_secret(settings) -> None:
    assert "sandbox-quickbooks" in settings.api_base("sandbox")
    assert settings.api_base("production").startswith("https://quickbooks.api.intuit.com/")
    assert settings.encryption_secret == "encryption-secret"
    assert settings.model_copy(update={"token_encryption_secret": None}).encryption_secret == "secret"
