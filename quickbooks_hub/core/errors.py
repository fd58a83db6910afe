"""Exception hierarchy raised by the connection hub."""

from __future__ import annotations

from typing import Optional


class QuickBooksError(Exception):
    """Base class for every error surfaced by the hub."""


class AuthenticationError(QuickBooksError):
    """Missing, expired or rejected credentials, or a failed OAuth exchange."""

    def __init__(
        self,
        message: str,
        *,
        company_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.company_id = company_id
        self.status_code = status_code


class InvalidStateError(AuthenticationError):
    """Raised when an OAuth state token cannot be decoded."""


class InvalidStateSignatureError(InvalidStateError):
    """Raised when an OAuth state token fails signature verification."""


class MissingCompanyIdError(InvalidStateError):
    """Raised when a verified state token carries no company identifier."""


class ApiError(QuickBooksError):
    """Non-success response or transport failure from the business API."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 0,
        company_id: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.company_id = company_id
        self.body = body


class RateLimitError(ApiError):
    """HTTP 429 returned by the business API."""


class CompanyNotFoundError(QuickBooksError):
    """Unknown company, or a company outside the active tenant."""

    def __init__(self, message: str, *, company_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.company_id = company_id


class ConfigurationError(ValueError):
    """Raised for an unknown store or resolver driver."""


__all__ = [
    "ApiError",
    "AuthenticationError",
    "CompanyNotFoundError",
    "ConfigurationError",
    "InvalidStateError",
    "InvalidStateSignatureError",
    "MissingCompanyIdError",
    "QuickBooksError",
    "RateLimitError",
]
