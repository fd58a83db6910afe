"""
Domain models for OAuth token persistence.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, field_validator


def parse_datetime(value: Any) -> Optional[datetime]:
    """Coerce stored timestamps (datetime, ISO string, unix seconds) to aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value)
    else:
        raise TypeError(f"Cannot interpret {type(value)!r} as a timestamp")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TokenSet(BaseModel):
    """Access/refresh token pair plus expiry metadata for one company."""

    access_token: str
    refresh_token: str
    access_token_expires_at: Optional[datetime] = None
    refresh_token_expires_at: Optional[datetime] = None
    realm_id: Optional[str] = None

    @field_validator("access_token_expires_at", "refresh_token_expires_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Optional[datetime]:
        return parse_datetime(value)

    def access_token_expired(self, now: Optional[datetime] = None) -> bool:
        """True when the access token carries an expiry that has passed."""
        if self.access_token_expires_at is None:
            return False
        return self.access_token_expires_at <= (now or datetime.now(timezone.utc))

    def refresh_token_expired(self, now: Optional[datetime] = None) -> bool:
        """True when the refresh token carries an expiry that has passed."""
        if self.refresh_token_expires_at is None:
            return False
        return self.refresh_token_expires_at <= (now or datetime.now(timezone.utc))

    def to_record(self) -> dict[str, Any]:
        """JSON-friendly mapping used by key/value backends."""
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, record: Any) -> Optional["TokenSet"]:
        """Build a token set from a stored mapping, or None if it is malformed."""
        if not isinstance(record, dict):
            return None
        try:
            return cls.model_validate(record)
        except (ValidationError, TypeError, ValueError):
            return None


__all__ = ["TokenSet", "parse_datetime"]
