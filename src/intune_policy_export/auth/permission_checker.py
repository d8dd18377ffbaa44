from __future__ import annotations

import base64
import json
from typing import Sequence

from intune_policy_export.config.settings import DEFAULT_GRAPH_SCOPES


_GRAPH_RESOURCE = "https://graph.microsoft.com/"


def _short_name(scope: str) -> str:
    return scope.removeprefix(_GRAPH_RESOURCE)


def granted_scopes(access_token: str) -> set[str]:
    """Delegated (``scp``) or application (``roles``) permissions in a JWT.

    Opaque or malformed tokens yield an empty set.
    """

    segments = access_token.split(".")
    if len(segments) < 2:
        return set()
    body = segments[1]
    try:
        claims = json.loads(base64.urlsafe_b64decode(body + "=" * (-len(body) % 4)))
    except ValueError:
        return set()
    if not isinstance(claims, dict):
        return set()

    raw = claims.get("scp") or claims.get("roles") or []
    values = raw.split() if isinstance(raw, str) else raw
    return {_short_name(str(value)) for value in values}


class PermissionChecker:
    """Report the export's read permissions a token does not carry.

    A ``ReadWrite`` grant covers the matching ``Read`` requirement.
    """

    def __init__(self, required_scopes: Sequence[str] | None = None) -> None:
        self._required = [_short_name(scope) for scope in required_scopes or DEFAULT_GRAPH_SCOPES]

    def missing_scopes(self, access_token: str) -> list[str]:
        granted = granted_scopes(access_token)
        return [
            scope
            for scope in self._required
            if scope not in granted and scope.replace(".Read.", ".ReadWrite.") not in granted
        ]


__all__ = ["PermissionChecker", "granted_scopes"]
