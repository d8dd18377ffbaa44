from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence


class GraphErrorCategory(str, Enum):
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    UNKNOWN = "unknown"


# Read permissions the export needs; surfaced with permission failures.
EXPORT_PERMISSIONS: tuple[str, ...] = (
    "DeviceManagementConfiguration.Read.All",
    "Group.Read.All",
)

_SUGGESTIONS: dict[GraphErrorCategory, str] = {
    GraphErrorCategory.AUTHENTICATION: (
        "Sign in again with an account that can read Intune configuration."
    ),
    GraphErrorCategory.PERMISSION: (
        "Ask an administrator to consent to the read permissions listed below."
    ),
    GraphErrorCategory.NETWORK: "Check your internet connection and try again.",
    GraphErrorCategory.NOT_FOUND: "The object no longer exists in the tenant.",
}


@dataclass(slots=True)
class GraphAPIError(Exception):
    """A failed Microsoft Graph call, classified for reporting."""

    message: str
    category: GraphErrorCategory = GraphErrorCategory.UNKNOWN
    status_code: int | None = None
    code: str | None = None
    retry_after: str | None = None
    inner_error: Exception | None = None
    request_method: str | None = None
    request_url: str | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    @property
    def recovery_suggestion(self) -> str | None:
        if self.category is GraphErrorCategory.RATE_LIMIT:
            wait = f"Wait {self.retry_after} seconds" if self.retry_after else "Wait a moment"
            return f"Microsoft Graph throttled the request. {wait} and rerun the export."
        return _SUGGESTIONS.get(self.category)

    @property
    def required_permissions(self) -> Sequence[str] | None:
        if self.category is GraphErrorCategory.PERMISSION:
            return list(EXPORT_PERMISSIONS)
        return None


class RateLimitError(GraphAPIError):
    def __init__(
        self,
        message: str = "Throttled by Microsoft Graph",
        retry_after: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            category=GraphErrorCategory.RATE_LIMIT,
            status_code=429,
            retry_after=retry_after,
        )


class AuthenticationError(GraphAPIError):
    def __init__(self, message: str = "Could not obtain an access token") -> None:
        super().__init__(message=message, category=GraphErrorCategory.AUTHENTICATION)


class PermissionError(GraphAPIError):
    def __init__(self, message: str = "Access to the resource was denied") -> None:
        super().__init__(
            message=message,
            category=GraphErrorCategory.PERMISSION,
            status_code=403,
        )


__all__ = [
    "EXPORT_PERMISSIONS",
    "GraphAPIError",
    "GraphErrorCategory",
    "RateLimitError",
    "AuthenticationError",
    "PermissionError",
]
