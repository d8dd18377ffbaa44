from __future__ import annotations

import pytest

from intune_policy_export.graph import GraphAPIError, GraphErrorCategory
from intune_policy_export.services import GroupNameCache, GroupNameResolver

from tests.stubs import FakeGraphClientFactory


@pytest.mark.asyncio
async def test_resolve_returns_display_name_and_caches(
    fake_graph: FakeGraphClientFactory,
) -> None:
    fake_graph.set_document("/groups/g1", {"id": "g1", "displayName": "Engineering"})
    resolver = GroupNameResolver(fake_graph, GroupNameCache())

    first = await resolver.resolve("g1")
    second = await resolver.resolve("g1")

    assert first is not None and first.resolved
    assert first.value == "Engineering"
    assert second == first
    assert fake_graph.requested_paths() == ["/groups/g1"]
    assert resolver.lookups == 1


@pytest.mark.asyncio
async def test_failed_lookup_falls_back_to_identifier_once(
    fake_graph: FakeGraphClientFactory,
) -> None:
    cache = GroupNameCache()
    resolver = GroupNameResolver(fake_graph, cache)

    first = await resolver.resolve("g2")
    second = await resolver.resolve("g2")

    assert first is not None
    assert first.value == "g2"
    assert not first.resolved
    assert isinstance(first.error, GraphAPIError)
    assert first.error.category is GraphErrorCategory.NOT_FOUND
    assert second is first
    assert fake_graph.requested_paths() == ["/groups/g2"]
    assert "g2" in cache


@pytest.mark.asyncio
async def test_cache_is_shared_between_resolvers(
    fake_graph: FakeGraphClientFactory,
) -> None:
    fake_graph.set_document("/groups/g1", {"id": "g1", "displayName": "Engineering"})
    cache = GroupNameCache()

    await GroupNameResolver(fake_graph, cache).resolve("g1")
    result = await GroupNameResolver(fake_graph, cache).resolve("g1")

    assert result is not None and result.value == "Engineering"
    assert len(fake_graph.sent) == 1
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_group_without_display_name_uses_identifier(
    fake_graph: FakeGraphClientFactory,
) -> None:
    fake_graph.set_document("/groups/g3", {"id": "g3", "displayName": None})
    resolver = GroupNameResolver(fake_graph, GroupNameCache())

    result = await resolver.resolve("g3")

    assert result is not None
    assert result.value == "g3"
    assert result.error is None


@pytest.mark.asyncio
async def test_empty_identifier_is_not_looked_up(
    fake_graph: FakeGraphClientFactory,
) -> None:
    resolver = GroupNameResolver(fake_graph, GroupNameCache())

    assert await resolver.resolve("") is None
    assert await resolver.resolve(None) is None
    assert fake_graph.sent == []
