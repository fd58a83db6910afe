"""Public schema exports."""

from .auth import AuthorizationResponse, ConnectionResponse

__all__ = ["AuthorizationResponse", "ConnectionResponse"]
