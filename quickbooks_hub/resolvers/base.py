"""Company resolver interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from quickbooks_hub.models import TenantContext


def unique_ids(values: Iterable[object]) -> List[str]:
    """Stringify, drop blanks and de-duplicate while keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        text = str(value).strip() if value is not None else ""
        if text:
            seen.setdefault(text, None)
    return list(seen)


class CompanyResolver(ABC):
    """Answers which company ids the system currently recognizes."""

    @abstractmethod
    def all(self, *, context: Optional[TenantContext] = None) -> List[str]:
        """Every known company id, without duplicates."""

    def has(self, company_id: str, *, context: Optional[TenantContext] = None) -> bool:
        return company_id in self.all(context=context)


__all__ = ["CompanyResolver", "unique_ids"]
