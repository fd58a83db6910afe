"""Expose QuickBooks protocol, API and storage clients."""

from .oauth import OAuthStateEncoder, QuickBooksOAuthClient
from .quickbooks import QuickBooksClient
from .resources import (
    Account,
    BaseResource,
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
from .sqlite_store import SQLiteDatabase

__all__ = [
    "Account",
    "BaseResource",
    "Bill",
    "CreditMemo",
    "Customer",
    "Employee",
    "Estimate",
    "Invoice",
    "OAuthStateEncoder",
    "Payment",
    "PurchaseOrder",
    "QuickBooksClient",
    "QuickBooksOAuthClient",
    "SQLiteDatabase",
    "Vendor",
]
