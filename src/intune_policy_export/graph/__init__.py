"""Graph client utilities."""

from .client import (
    GraphAPIVersion,
    GraphClientConfig,
    GraphClientFactory,
    TokenProvider,
)
from .errors import (
    AuthenticationError,
    GraphAPIError,
    GraphErrorCategory,
    PermissionError,
    RateLimitError,
)

__all__ = [
    "GraphAPIError",
    "GraphErrorCategory",
    "RateLimitError",
    "AuthenticationError",
    "PermissionError",
    "GraphClientFactory",
    "GraphClientConfig",
    "GraphAPIVersion",
    "TokenProvider",
]
