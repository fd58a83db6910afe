"""Resolver over a comma-separated environment variable."""

from __future__ import annotations

import os
from typing import List, Optional

from quickbooks_hub.models import TenantContext
from quickbooks_hub.resolvers.base import CompanyResolver, unique_ids

DEFAULT_ENV_VAR = "QUICKBOOKS_COMPANIES"


class EnvResolver(CompanyResolver):
    """Reads the variable on every call so edits apply without a restart."""

    def __init__(self, env_var: str = DEFAULT_ENV_VAR) -> None:
        self._env_var = env_var

    def all(self, *, context: Optional[TenantContext] = None) -> List[str]:
        raw = os.environ.get(self._env_var, "")
        return unique_ids(raw.split(","))


__all__ = ["DEFAULT_ENV_VAR", "EnvResolver"]
