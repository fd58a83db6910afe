"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from quickbooks_hub.core.config import QuickBooksSettings


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def settings(tmp_path) -> QuickBooksSettings:
    """Settings isolated from the process environment and any ``.env`` file."""
    return QuickBooksSettings(
        client_id="client",
        client_secret="secret",
        redirect_uri="https://example.com/quickbooks/callback",
        database_path=str(tmp_path / "quickbooks.db"),
        token_encryption_secret="encryption-secret",
        _env_file=None,
    )
