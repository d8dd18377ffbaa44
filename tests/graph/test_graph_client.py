from __future__ import annotations

import httpx
import pytest
import respx

from intune_policy_export.graph import (
    GraphAPIError,
    GraphAPIVersion,
    GraphClientFactory,
    GraphErrorCategory,
    RateLimitError,
)
from intune_policy_export.graph.errors import PermissionError as GraphPermissionError
from intune_policy_export.graph.requests import (
    group_request,
    policy_assignments_request,
    policy_list_request,
)

from tests.factories import GRAPH_HOST, graph_path, graph_url, make_client_factory


def test_settings_catalog_and_filters_resolve_to_beta() -> None:
    factory = make_client_factory()

    assert (
        factory.resolve_api_version("/deviceManagement/configurationPolicies")
        == GraphAPIVersion.BETA.value
    )
    assert (
        factory.resolve_api_version("/deviceManagement/assignmentFilters/filter-1")
        == GraphAPIVersion.BETA.value
    )
    assert (
        factory.resolve_api_version("/deviceManagement/deviceConfigurations")
        == GraphAPIVersion.V1.value
    )
    assert (
        factory.resolve_api_version("/deviceManagement/configurationPoliciesArchive")
        == GraphAPIVersion.V1.value
    )


def test_default_version_applies_outside_beta_collections() -> None:
    factory = make_client_factory(api_version=GraphAPIVersion.BETA)

    assert factory.url_for("groups/g-1") == graph_url("/groups/g-1", version="beta")
    assert factory.url_for("https://graph.microsoft.com/v1.0/groups?$skiptoken=x") == (
        "https://graph.microsoft.com/v1.0/groups?$skiptoken=x"
    )


@pytest.mark.asyncio
async def test_iter_request_follows_next_link(
    respx_mock: respx.Router,
    graph_factory: GraphClientFactory,
) -> None:
    url = graph_url("/deviceManagement/deviceConfigurations")
    next_link = f"{url}?$skiptoken=page-2"
    route = respx_mock.get(
        host=GRAPH_HOST, path=graph_path("/deviceManagement/deviceConfigurations")
    ).mock(
        side_effect=[
            httpx.Response(
                200,
                json={"value": [{"id": "a"}, {"id": "b"}], "@odata.nextLink": next_link},
            ),
            httpx.Response(200, json={"value": [{"id": "c"}]}),
        ],
    )

    items = [
        item
        async for item in graph_factory.iter_request(policy_list_request("deviceConfigurations"))
    ]

    assert [item["id"] for item in items] == ["a", "b", "c"]
    assert route.call_count == 2
    first, second = route.calls
    assert first.request.url.params["$top"] == "100"
    assert second.request.url.params["$skiptoken"] == "page-2"
    assert "$top" not in second.request.url.params


@pytest.mark.asyncio
async def test_iter_request_without_page_size_omits_top(
    respx_mock: respx.Router,
    graph_factory: GraphClientFactory,
) -> None:
    route = respx_mock.get(
        host=GRAPH_HOST,
        path=graph_path("/deviceManagement/configurationPolicies/p-1/assignments", version="beta"),
    ).mock(return_value=httpx.Response(200, json={"value": []}))

    request = policy_assignments_request("configurationPolicies", "p-1")
    items = [item async for item in graph_factory.iter_request(request, page_size=0)]

    assert items == []
    assert "$top" not in route.calls.last.request.url.params


@pytest.mark.asyncio
async def test_send_attaches_bearer_token(
    respx_mock: respx.Router,
    graph_factory: GraphClientFactory,
) -> None:
    route = respx_mock.get(host=GRAPH_HOST, path=graph_path("/groups/g-1")).mock(
        return_value=httpx.Response(200, json={"id": "g-1", "displayName": "Engineering"}),
    )

    payload = await graph_factory.send(group_request("g-1"))

    assert payload["displayName"] == "Engineering"
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer token"
    assert request.url.params["$select"] == "id,displayName"


@pytest.mark.asyncio
async def test_forbidden_maps_to_permission_error(
    respx_mock: respx.Router,
    graph_factory: GraphClientFactory,
) -> None:
    respx_mock.get(
        host=GRAPH_HOST, path=graph_path("/deviceManagement/deviceCompliancePolicies")
    ).mock(
        return_value=httpx.Response(
            403,
            json={"error": {"code": "Forbidden", "message": "Access denied"}},
        ),
    )

    with pytest.raises(GraphPermissionError) as excinfo:
        await graph_factory.send(policy_list_request("deviceCompliancePolicies"))

    error = excinfo.value
    assert error.status_code == 403
    assert str(error) == "Access denied"
    assert error.request_method == "GET"
    assert error.request_url == graph_url("/deviceManagement/deviceCompliancePolicies")
    assert "DeviceManagementConfiguration.Read.All" in (error.required_permissions or [])


@pytest.mark.asyncio
async def test_throttling_is_not_retried(
    respx_mock: respx.Router,
    graph_factory: GraphClientFactory,
) -> None:
    route = respx_mock.get(host=GRAPH_HOST, path=graph_path("/groups/g-1")).mock(
        return_value=httpx.Response(429, headers={"Retry-After": "30"}, json={}),
    )

    with pytest.raises(RateLimitError) as excinfo:
        await graph_factory.send(group_request("g-1"))

    assert route.call_count == 1
    assert excinfo.value.retry_after == "30"
    assert "30 seconds" in (excinfo.value.recovery_suggestion or "")


@pytest.mark.asyncio
async def test_not_found_and_network_errors_are_categorised(
    respx_mock: respx.Router,
    graph_factory: GraphClientFactory,
) -> None:
    respx_mock.get(host=GRAPH_HOST, path=graph_path("/groups/missing")).mock(
        return_value=httpx.Response(
            404,
            json={"error": {"code": "Request_ResourceNotFound", "message": "Not found"}},
        ),
    )
    respx_mock.get(host=GRAPH_HOST, path=graph_path("/groups/offline")).mock(
        side_effect=httpx.ConnectError("connection refused"),
    )

    with pytest.raises(GraphAPIError) as missing:
        await graph_factory.send(group_request("missing"))
    with pytest.raises(GraphAPIError) as offline:
        await graph_factory.send(group_request("offline"))

    assert missing.value.category is GraphErrorCategory.NOT_FOUND
    assert missing.value.code == "Request_ResourceNotFound"
    assert offline.value.category is GraphErrorCategory.NETWORK
    assert isinstance(offline.value.inner_error, httpx.ConnectError)
