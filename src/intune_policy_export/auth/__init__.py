"""Authentication utilities for the policy exporter."""

from .auth_manager import AuthManager, AuthenticatedUser
from .permission_checker import PermissionChecker
from .token_cache import TokenCacheManager
from .types import AccessToken, TokenProvider

__all__ = [
    "AccessToken",
    "TokenProvider",
    "AuthManager",
    "AuthenticatedUser",
    "TokenCacheManager",
    "PermissionChecker",
]
