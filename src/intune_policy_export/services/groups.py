from __future__ import annotations

from intune_policy_export.data import DirectoryGroup
from intune_policy_export.graph.client import GraphClientFactory
from intune_policy_export.graph.requests import group_request
from intune_policy_export.services.base import LookupResult
from intune_policy_export.utils import get_logger


logger = get_logger(__name__)


class GroupNameCache:
    """Group id to lookup result, shared by every collector of one export run.

    Entries are never invalidated; failed lookups are stored as well so a
    group is fetched at most once per run.
    """

    def __init__(self) -> None:
        self._entries: dict[str, LookupResult] = {}

    def get(self, group_id: str) -> LookupResult | None:
        return self._entries.get(group_id)

    def store(self, result: LookupResult) -> None:
        self._entries[result.key] = result

    def __contains__(self, group_id: object) -> bool:
        return group_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class GroupNameResolver:
    """Resolve Entra ID group identifiers to display names."""

    def __init__(
        self,
        client_factory: GraphClientFactory,
        cache: GroupNameCache,
    ) -> None:
        self._client_factory = client_factory
        self._cache = cache
        self.lookups = 0

    @property
    def cache(self) -> GroupNameCache:
        return self._cache

    async def resolve(self, group_id: str | None) -> LookupResult | None:
        if not group_id:
            return None
        cached = self._cache.get(group_id)
        if cached is not None:
            return cached

        self.lookups += 1
        try:
            payload = await self._client_factory.send(group_request(group_id))
            group = DirectoryGroup.from_graph(payload)
        except Exception as exc:  # noqa: BLE001
            result = LookupResult.fallback(group_id, exc)
        else:
            if group.display_name:
                result = LookupResult.success(group_id, group.display_name)
            else:
                result = LookupResult.fallback(group_id)
        self._cache.store(result)
        logger.debug(
            "Group lookup",
            group_id=group_id,
            resolved=result.resolved,
            cached_groups=len(self._cache),
        )
        return result


__all__ = ["GroupNameCache", "GroupNameResolver"]
