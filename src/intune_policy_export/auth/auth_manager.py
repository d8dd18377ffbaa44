from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import msal

from intune_policy_export.auth.types import AccessToken, TokenProvider
from intune_policy_export.config.settings import DEFAULT_GRAPH_SCOPES, Settings
from intune_policy_export.graph.errors import AuthenticationError
from intune_policy_export.utils import get_logger

from .permission_checker import PermissionChecker
from .token_cache import TokenCacheManager


logger = get_logger(__name__)

# MSAL adds these itself and rejects them when requested explicitly.
_IMPLICIT_SCOPES = frozenset({"profile", "openid", "offline_access"})
_DEFAULT_LIFETIME = 3600


def msal_scopes(scopes: Sequence[str]) -> list[str]:
    """Scopes in the form MSAL accepts for delegated sign-in."""

    requested = [
        scope
        for scope in scopes
        if scope not in _IMPLICIT_SCOPES and not scope.endswith("/.default")
    ]
    if len(requested) != len(scopes):
        logger.debug(
            "Dropped scopes MSAL manages itself",
            dropped=sorted(set(scopes) - set(requested)),
        )
    return requested


@dataclass(slots=True)
class AuthenticatedUser:
    display_name: str | None
    username: str | None
    home_account_id: str | None
    tenant_id: str | None


class AuthManager:
    """Obtain delegated Graph tokens through an MSAL public client.

    `sign_in` runs once before the export; it uses a cached account when one
    exists and otherwise opens the browser. The token provider handed to the
    Graph client only ever acquires silently.
    """

    def __init__(self) -> None:
        self._app: msal.PublicClientApplication | None = None
        self._token_cache: TokenCacheManager | None = None
        self._checker = PermissionChecker()
        self._user: AuthenticatedUser | None = None
        self._missing: list[str] = []
        self._lock = threading.Lock()

    def configure(self, settings: Settings) -> None:
        """Create the MSAL client for ``settings``.

        Raises:
            AuthenticationError: The client id is missing or MSAL rejects the
                authority.
        """

        if not settings.client_id:
            raise AuthenticationError("A client id is required to sign in")

        authority = settings.derive_authority()
        token_cache = TokenCacheManager(settings.token_cache_path)
        try:
            app = msal.PublicClientApplication(
                client_id=settings.client_id,
                authority=authority,
                token_cache=token_cache.cache,
            )
        except ValueError as exc:
            logger.error("MSAL rejected the configuration", authority=authority, error=str(exc))
            raise AuthenticationError(f"Invalid authority: {exc}") from exc

        self._app = app
        self._token_cache = token_cache
        self._checker = PermissionChecker(list(settings.configured_scopes()) or None)
        self._missing = []
        logger.info("Authentication configured", authority=authority)

    async def sign_in(self, scopes: Sequence[str] | None = None) -> AccessToken:
        requested = list(scopes or DEFAULT_GRAPH_SCOPES)
        return await asyncio.to_thread(self._acquire, requested, True)

    def acquire_token_sync(self, scopes: Sequence[str] | None = None) -> AccessToken:
        return self._acquire(list(scopes or DEFAULT_GRAPH_SCOPES), False)

    def token_provider(self) -> TokenProvider:
        return self.acquire_token_sync

    def current_user(self) -> AuthenticatedUser | None:
        return self._user

    def missing_scopes(self) -> list[str]:
        """Required scopes absent from the most recent token."""
        return list(self._missing)

    # ------------------------------------------------------------- Internals

    def _acquire(self, scopes: Sequence[str], allow_interactive: bool) -> AccessToken:
        if self._app is None:
            raise AuthenticationError("Authentication has not been configured")
        app = self._app
        requested = msal_scopes(scopes)

        with self._lock:
            result: Mapping[str, Any] | None = None
            account = self._first_account(app)
            if account is not None:
                result = app.acquire_token_silent(requested, account=account)
            if not result:
                if not allow_interactive:
                    raise AuthenticationError(
                        "Interactive sign-in required before accessing Microsoft Graph",
                    )
                logger.info("Opening the browser for interactive sign-in")
                result = app.acquire_token_interactive(
                    scopes=requested,
                    prompt="select_account",
                )
            token = self._read_result(result)
            if self._token_cache is not None:
                self._token_cache.save()
            return token

    def _first_account(self, app: msal.PublicClientApplication) -> dict | None:
        accounts = app.get_accounts()
        if not accounts:
            return None
        account = accounts[0]
        self._user = AuthenticatedUser(
            display_name=account.get("name"),
            username=account.get("username"),
            home_account_id=account.get("home_account_id"),
            tenant_id=account.get("environment"),
        )
        return account

    def _read_result(self, result: Mapping[str, Any]) -> AccessToken:
        if "error" in result:
            description = str(result.get("error_description") or result.get("error"))
            if result.get("error") == "AADSTS7000218" or "client_assertion" in description.lower():
                raise AuthenticationError(
                    "The app registration is a confidential client. Register it as "
                    "'Mobile and desktop applications' with a http://localhost "
                    f"redirect URI and rerun the export. ({description})",
                )
            raise AuthenticationError(f"Sign-in failed: {description}")

        access_token = result.get("access_token")
        if not isinstance(access_token, str):
            raise AuthenticationError("MSAL returned no access token")

        claims = result.get("id_token_claims")
        if isinstance(claims, Mapping):
            self._user = AuthenticatedUser(
                display_name=claims.get("name"),
                username=claims.get("preferred_username") or claims.get("email"),
                home_account_id=claims.get("oid"),
                tenant_id=claims.get("tid"),
            )
        self._missing = self._checker.missing_scopes(access_token)
        return AccessToken(access_token, _expiry(result))


def _expiry(result: Mapping[str, Any]) -> int:
    expires_on = result.get("expires_on")
    if isinstance(expires_on, (int, str)) and str(expires_on).isdigit():
        return int(expires_on)
    expires_in = result.get("expires_in")
    lifetime = int(expires_in) if isinstance(expires_in, (int, str)) else _DEFAULT_LIFETIME
    return int(time.time()) + lifetime


__all__ = ["AuthManager", "AuthenticatedUser", "msal_scopes"]
