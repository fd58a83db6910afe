"""Company resolution strategies."""

from .base import CompanyResolver
from .chain import ChainResolver
from .env import EnvResolver
from .factory import create_resolver
from .model import ModelResolver
from .static import StaticResolver

__all__ = [
    "ChainResolver",
    "CompanyResolver",
    "EnvResolver",
    "ModelResolver",
    "StaticResolver",
    "create_resolver",
]
