from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncGenerator, Generator, Sequence

import httpx

from intune_policy_export.auth.types import TokenProvider
from intune_policy_export.graph.errors import (
    AuthenticationError,
    GraphAPIError,
    GraphErrorCategory,
    PermissionError,
    RateLimitError,
)
from intune_policy_export.graph.requests import GraphRequest
from intune_policy_export.utils import get_logger


logger = get_logger(__name__)


GRAPH_ROOT = "https://graph.microsoft.com"


class GraphAPIVersion(str, Enum):
    """Microsoft Graph API versions the exporter talks to."""

    V1 = "v1.0"
    BETA = "beta"


# Collections that only exist on the beta endpoint.
BETA_PREFIXES: tuple[str, ...] = (
    "/deviceManagement/configurationPolicies",
    "/deviceManagement/assignmentFilters",
)

_STATUS_CATEGORIES: dict[int, GraphErrorCategory] = {
    400: GraphErrorCategory.VALIDATION,
    404: GraphErrorCategory.NOT_FOUND,
}


def _under_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(f"{prefix}/")


def error_from_response(response: httpx.Response) -> GraphAPIError:
    """Translate an unsuccessful Graph response into a `GraphAPIError`."""

    status = response.status_code
    try:
        body: Any = response.json()
    except ValueError:
        body = None

    detail = body.get("error") if isinstance(body, dict) else None
    if not isinstance(detail, dict):
        detail = {}
    message = detail.get("message")
    if not message:
        message = (response.text.strip() if body is None else "") or (
            f"Graph request failed with status {status}"
        )
    code = detail.get("code")
    retry_after = response.headers.get("Retry-After")

    match status:
        case 401:
            error: GraphAPIError = AuthenticationError(message)
        case 403:
            error = PermissionError(message)
        case 429:
            error = RateLimitError(message, retry_after=retry_after)
        case _:
            error = GraphAPIError(
                message=message,
                category=_STATUS_CATEGORIES.get(status, GraphErrorCategory.UNKNOWN),
                retry_after=retry_after,
            )
    error.status_code = status
    error.code = code if isinstance(code, str) else None
    return error


class BearerTokenAuth(httpx.Auth):
    """Attach a fresh access token from the token provider to every request."""

    def __init__(self, token_provider: TokenProvider, scopes: Sequence[str]) -> None:
        self._token_provider = token_provider
        self._scopes = list(scopes)

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._token_provider(self._scopes)
        request.headers["Authorization"] = f"Bearer {token.token}"
        yield request


@dataclass(slots=True)
class GraphClientConfig:
    scopes: Sequence[str]
    user_agent: str = "IntunePolicyExport-Python"
    api_version: GraphAPIVersion = GraphAPIVersion.V1
    beta_prefixes: Sequence[str] = BETA_PREFIXES
    page_size: int = 100
    timeout: float = 60.0
    log_requests: bool = True


class GraphClientFactory:
    """Read-only Microsoft Graph access for the export.

    The httpx client is created on first use. Every request is attempted
    once; HTTP and transport failures surface as `GraphAPIError` carrying the
    method and URL of the failed call.
    """

    def __init__(self, token_provider: TokenProvider, config: GraphClientConfig) -> None:
        self._token_provider = token_provider
        self._config = config
        self._default_version = GraphAPIVersion(config.api_version).value
        self._http_client: httpx.AsyncClient | None = None

    def resolve_api_version(self, path: str) -> str:
        """Return the API version that serves ``path``."""

        relative = "/" + path.strip().lstrip("/")
        if any(_under_prefix(relative, prefix) for prefix in self._config.beta_prefixes):
            return GraphAPIVersion.BETA.value
        return self._default_version

    def url_for(self, path: str) -> str:
        if path.startswith(("https://", "http://")):
            return path
        relative = "/" + path.strip().lstrip("/")
        version = self.resolve_api_version(relative)
        return f"{GRAPH_ROOT}/{version}{relative}"

    async def send(self, request: GraphRequest) -> dict[str, Any]:
        """Execute a single request and return its decoded JSON body."""

        url = self.url_for(request.url)
        return await self._fetch(
            request.method,
            url,
            params=request.params,
            headers=request.headers,
        )

    async def iter_request(
        self,
        request: GraphRequest,
        *,
        page_size: int | None = None,
    ) -> AsyncGenerator[dict[str, Any], None]:
        """Yield every item of a collection, following ``@odata.nextLink``.

        ``page_size`` defaults to the configured size; ``0`` sends no ``$top``.
        """

        params = dict(request.params or {})
        top = self._config.page_size if page_size is None else page_size
        if top and "$top" not in params:
            params["$top"] = top

        next_url: str | None = self.url_for(request.url)
        query: dict[str, Any] | None = params or None
        while next_url:
            page = await self._fetch(
                request.method,
                next_url,
                params=query,
                headers=request.headers,
            )
            items = page.get("value")
            if not isinstance(items, list):
                yield page
                return
            for item in items:
                yield item if isinstance(item, dict) else {"value": item}
            link = page.get("@odata.nextLink")
            next_url = link if isinstance(link, str) and link else None
            # The next link already carries the original query.
            query = None

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ------------------------------------------------------------- Internals

    async def _fetch(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> dict[str, Any]:
        client = self._client()
        started = time.perf_counter()
        try:
            response = await client.request(method, url, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            raise GraphAPIError(
                message="Timed out waiting for Microsoft Graph",
                category=GraphErrorCategory.NETWORK,
                inner_error=exc,
                request_method=method,
                request_url=url,
            ) from exc
        except httpx.RequestError as exc:
            raise GraphAPIError(
                message=f"Could not reach Microsoft Graph: {exc}",
                category=GraphErrorCategory.NETWORK,
                inner_error=exc,
                request_method=method,
                request_url=url,
            ) from exc

        if self._config.log_requests:
            logger.debug(
                "Graph request",
                method=method,
                url=str(response.request.url),
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        if response.is_error:
            error = error_from_response(response)
            error.request_method = method
            error.request_url = url
            raise error

        payload = response.json()
        return payload if isinstance(payload, dict) else {"value": payload}

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                headers={"User-Agent": self._config.user_agent},
                auth=BearerTokenAuth(self._token_provider, self._config.scopes),
                timeout=httpx.Timeout(self._config.timeout, connect=10.0),
            )
        return self._http_client


__all__ = [
    "GraphClientFactory",
    "GraphClientConfig",
    "GraphAPIVersion",
    "BearerTokenAuth",
    "TokenProvider",
    "error_from_response",
]
