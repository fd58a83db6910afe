"""Build the configured company resolver."""

from __future__ import annotations

from typing import Optional

from quickbooks_hub.core.config import QuickBooksSettings, ResolverDriver
from quickbooks_hub.core.errors import ConfigurationError
from quickbooks_hub.resolvers.base import CompanyResolver
from quickbooks_hub.resolvers.chain import ChainResolver
from quickbooks_hub.resolvers.env import EnvResolver
from quickbooks_hub.resolvers.model import ModelResolver
from quickbooks_hub.resolvers.static import StaticResolver
from quickbooks_hub.services.companies import CompanyRepository


def create_resolver(
    settings: QuickBooksSettings,
    *,
    repository: Optional[CompanyRepository] = None,
    driver: Optional[str] = None,
) -> CompanyResolver:
    """Return the resolver for ``driver`` (defaults to ``settings.company_resolver``)."""
    try:
        selected = ResolverDriver(driver or settings.company_resolver)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown company resolver driver [{driver}].") from exc

    if selected is ResolverDriver.STATIC:
        return StaticResolver(settings.companies)
    if selected is ResolverDriver.ENV:
        return EnvResolver()
    if selected is ResolverDriver.MODEL:
        if repository is None:
            raise ConfigurationError("The model resolver requires a company repository.")
        return ModelResolver(repository, conditions=settings.company_conditions)

    members = []
    for member in settings.chain_resolvers:
        if ResolverDriver(member) is ResolverDriver.CHAIN:
            raise ConfigurationError("A chain resolver cannot contain another chain.")
        members.append(create_resolver(settings, repository=repository, driver=member))
    return ChainResolver(members)


__all__ = ["create_resolver"]
