"""Typed wrappers for QuickBooks entity endpoints."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from quickbooks_hub.clients.quickbooks import QuickBooksClient

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def escape_query_value(value: str) -> str:
    """Escape a literal for interpolation inside single quotes in a query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class BaseResource:
    """CRUD helpers shared by every entity; subclasses set ``resource_name``."""

    resource_name: str = ""

    def __init__(self, client: "QuickBooksClient") -> None:
        self._client = client

    async def all(self) -> Dict[str, Any]:
        return await self._client.request("GET", self.resource_name)

    async def find(self, entity_id: str) -> Dict[str, Any]:
        return await self._client.request("GET", f"{self.resource_name}/{entity_id}")

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._client.request("POST", self.resource_name, json=payload)

    async def update(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        # QuickBooks updates are POSTs of the full entity including Id and SyncToken.
        return await self._client.request("POST", self.resource_name, json=payload)

    async def sparse_update(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.update({**payload, "sparse": True})

    async def query(self, query: str) -> Dict[str, Any]:
        return await self._client.query(query)

    async def _where_equals(self, entity: str, field: str, value: str) -> Dict[str, Any]:
        safe = escape_query_value(value)
        return await self.query(f"SELECT * FROM {entity} WHERE {field} = '{safe}'")


ACCOUNT_TYPES = frozenset(
    {
        "Bank",
        "Other Current Asset",
        "Fixed Asset",
        "Other Asset",
        "Accounts Receivable",
        "Equity",
        "Expense",
        "Other Expense",
        "Cost of Goods Sold",
        "Accounts Payable",
        "Credit Card",
        "Long Term Liability",
        "Other Current Liability",
        "Income",
        "Other Income",
    }
)


class Account(BaseResource):
    resource_name = "account"

    async def get_by_type(self, account_type: str) -> Dict[str, Any]:
        if account_type not in ACCOUNT_TYPES:
            raise ValueError(
                f"Invalid AccountType: [{account_type}]. "
                f"Valid types: {', '.join(sorted(ACCOUNT_TYPES))}."
            )
        return await self.query(f"SELECT * FROM Account WHERE AccountType = '{account_type}'")


class Bill(BaseResource):
    resource_name = "bill"

    async def unpaid(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM Bill WHERE Balance > '0'")

    async def for_vendor(self, vendor_id: str) -> Dict[str, Any]:
        return await self._where_equals("Bill", "VendorRef", vendor_id)


class CreditMemo(BaseResource):
    resource_name = "creditmemo"

    async def unapplied(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM CreditMemo WHERE Balance > '0'")

    async def for_customer(self, customer_id: str) -> Dict[str, Any]:
        return await self._where_equals("CreditMemo", "CustomerRef", customer_id)


class Customer(BaseResource):
    resource_name = "customer"

    async def active(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM Customer WHERE Active = true")

    async def find_by_email(self, email: str) -> Dict[str, Any]:
        if not _EMAIL_PATTERN.match(email):
            raise ValueError(f"Invalid email address provided: [{email}].")
        return await self._where_equals("Customer", "PrimaryEmailAddr", email)


class Employee(BaseResource):
    resource_name = "employee"

    async def active(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM Employee WHERE Active = true")

    async def find_by_name(self, name: str) -> Dict[str, Any]:
        return await self._where_equals("Employee", "DisplayName", name)


class Estimate(BaseResource):
    resource_name = "estimate"

    async def pending(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM Estimate WHERE TxnStatus = 'Pending'")

    async def accepted(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM Estimate WHERE TxnStatus = 'Accepted'")

    async def for_customer(self, customer_id: str) -> Dict[str, Any]:
        return await self._where_equals("Estimate", "CustomerRef", customer_id)


class Invoice(BaseResource):
    resource_name = "invoice"

    async def overdue(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM Invoice WHERE Balance > '0'")


class Payment(BaseResource):
    resource_name = "payment"


class PurchaseOrder(BaseResource):
    resource_name = "purchaseorder"

    async def open(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM PurchaseOrder WHERE POStatus = 'Open'")

    async def for_vendor(self, vendor_id: str) -> Dict[str, Any]:
        return await self._where_equals("PurchaseOrder", "VendorRef", vendor_id)


class Vendor(BaseResource):
    resource_name = "vendor"

    async def active(self) -> Dict[str, Any]:
        return await self.query("SELECT * FROM Vendor WHERE Active = true")

    async def find_by_name(self, name: str) -> Dict[str, Any]:
        return await self._where_equals("Vendor", "DisplayName", name)


__all__ = [
    "ACCOUNT_TYPES",
    "Account",
    "BaseResource",
    "Bill",
    "CreditMemo",
    "Customer",
    "Employee",
    "Estimate",
    "Invoice",
    "Payment",
    "PurchaseOrder",
    "Vendor",
    "escape_query_value",
]
