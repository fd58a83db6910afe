"""Service layer exports."""

from .token_cipher import TokenCipherService
from .companies import CompanyRepository, SQLiteCompanyRepository

__all__ = [
    "CompanyRepository",
    "SQLiteCompanyRepository",
    "TokenCipherService",
]
