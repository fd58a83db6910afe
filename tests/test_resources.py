try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from quickbooks_hub.clients.resources import Account, Customer, Invoice, Vendor, escape_query_value


class RecordingClient:
    """Captures calls made by resource helpers instead of sending them."""

    def __init__(self) -> None:
        self.requests: list[tuple] = []
        self.queries: list[str] = []

    async def request(self, method, uri, *, params=None, json=None, headers=None):
        self.requests.append((method, uri, json))
        return {}

    async def query(self, query: str):
        self.queries.append(query)
        return {}


def test_escape_query_value_escapes_backslash_before_quote() -> None:
    assert escape_query_value("O'Brien\\Co") == "O\\'Brien\\\\Co"


@pytest.mark.asyncio
async def test_crud_helpers_target_entity_endpoint() -> None:
    client = RecordingClient()
    invoices = Invoice(client)

    await invoices.find("42")
    await invoices.create({"Line": []})
    await invoices.sparse_update({"Id": "42", "SyncToken": "0"})

    assert client.requests == [
        ("GET", "invoice/42", None),
        ("POST", "invoice", {"Line": []}),
        ("POST", "invoice", {"Id": "42", "SyncToken": "0", "sparse": True}),
    ]


@pytest.mark.asyncio
async def test_find_by_email_escapes_input() -> None:
    client = RecordingClient()

    await Customer(client).find_by_email("o'brien@example.com")

    assert client.queries == [
        "SELECT * FROM Customer WHERE PrimaryEmailAddr = 'o\\'brien@example.com'"
    ]


@pytest.mark.asyncio
async def test_find_by_email_rejects_invalid_address() -> None:
    client = RecordingClient()

    with pytest.raises(ValueError):
        await Customer(client).find_by_email("not-an-email")
    assert client.queries == []


@pytest.mark.asyncio
async def test_vendor_lookup_by_name_is_escaped() -> None:
    client = RecordingClient()

    await Vendor(client).find_by_name("Smith's Supplies")

    assert client.queries == ["SELECT * FROM Vendor WHERE DisplayName = 'Smith\\'s Supplies'"]


@pytest.mark.asyncio
async def test_account_type_is_validated() -> None:
    client = RecordingClient()
    accounts = Account(client)

    await accounts.get_by_type("Bank")
    with pytest.raises(ValueError):
        await accounts.get_by_type("Bank' OR '1'='1")

    assert client.queries == ["SELECT * FROM Account WHERE AccountType = 'Bank'"]
