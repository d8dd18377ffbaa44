from __future__ import annotations

from intune_policy_export.data import AssignmentFilter
from intune_policy_export.graph.client import GraphClientFactory
from intune_policy_export.graph.requests import assignment_filter_request
from intune_policy_export.services.base import LookupResult
from intune_policy_export.utils import get_logger


logger = get_logger(__name__)


def format_filter_fragment(name: str, filter_type: str | None) -> str:
    return f"[Filter: {name} ({filter_type or ''})]"


class AssignmentFilterResolver:
    """Resolve assignment filter identifiers into label fragments.

    Lookups are cached for the lifetime of the resolver, failures included.
    """

    def __init__(self, client_factory: GraphClientFactory) -> None:
        self._client_factory = client_factory
        self._cache: dict[str, LookupResult] = {}
        self.lookups = 0

    async def lookup(self, filter_id: str) -> LookupResult:
        cached = self._cache.get(filter_id)
        if cached is not None:
            return cached

        self.lookups += 1
        try:
            payload = await self._client_factory.send(
                assignment_filter_request(filter_id)
            )
            assignment_filter = AssignmentFilter.from_graph(payload)
        except Exception as exc:  # noqa: BLE001
            result = LookupResult.fallback(filter_id, exc)
        else:
            if assignment_filter.display_name:
                result = LookupResult.success(filter_id, assignment_filter.display_name)
            else:
                result = LookupResult.fallback(filter_id)
        self._cache[filter_id] = result
        logger.debug("Assignment filter lookup", filter_id=filter_id, resolved=result.resolved)
        return result

    async def resolve(
        self,
        filter_id: str | None,
        filter_type: str | None,
    ) -> str | None:
        """Return ``[Filter: <name> (<type>)]`` or ``None`` without a filter id."""

        if not filter_id:
            return None
        result = await self.lookup(filter_id)
        return format_filter_fragment(result.value, filter_type)


__all__ = ["AssignmentFilterResolver", "format_filter_fragment"]
