from __future__ import annotations

import httpx
import pytest
import respx

from oncall_planner.api import OnCallAPIError, OnCallClient, OnCallClientConfig
from oncall_planner.services import MemberService


BASE_URL = "https://oncall.example.com/api/internal/v1"


def _service() -> MemberService:
    return MemberService(
        OnCallClient(lambda: "token", OnCallClientConfig(base_url=BASE_URL))
    )


@pytest.mark.asyncio
async def test_lookup_fetches_once_then_uses_cache(respx_mock: respx.MockRouter) -> None:
    route = respx_mock.get(f"{BASE_URL}/users/U1/").mock(
        return_value=httpx.Response(
            200,
            json={
                "pk": "U1",
                "username": "alice",
                "timezone": "Europe/Berlin",
                "working_hours": {"monday": [{"start": "09:00:00", "end": "17:00:00"}]},
            },
        )
    )
    service = _service()

    first = await service.lookup("U1")
    second = await service.lookup("U1")

    assert first is second
    assert route.call_count == 1
    assert first is not None
    assert first.label == "alice (Europe/Berlin)"
    assert first.working_hours["monday"][0].start == "09:00:00"
    assert service.cached("U1") is first


@pytest.mark.asyncio
async def test_lookup_unknown_member_returns_none(respx_mock: respx.MockRouter) -> None:
    respx_mock.get(f"{BASE_URL}/users/U404/").mock(
        return_value=httpx.Response(404, json={"detail": "Not found."})
    )

    assert await _service().lookup("U404") is None


@pytest.mark.asyncio
async def test_lookup_propagates_other_errors(respx_mock: respx.MockRouter) -> None:
    respx_mock.get(f"{BASE_URL}/users/U1/").mock(return_value=httpx.Response(500))

    with pytest.raises(OnCallAPIError):
        await _service().lookup("U1")


@pytest.mark.asyncio
async def test_search_accepts_paginated_payload(respx_mock: respx.MockRouter) -> None:
    route = respx_mock.get(f"{BASE_URL}/users/").mock(
        return_value=httpx.Response(
            200,
            json={
                "count": 2,
                "results": [
                    {"pk": "U1", "username": "alice"},
                    {"pk": "U2", "name": "bob"},
                ],
            },
        )
    )
    service = _service()

    members = await service.search("  al ")

    assert route.calls.last.request.url.params["search"] == "al"
    assert [member.username for member in members] == ["alice", "bob"]
    assert service.cached("U2") is not None


@pytest.mark.asyncio
async def test_search_accepts_plain_list(respx_mock: respx.MockRouter) -> None:
    route = respx_mock.get(f"{BASE_URL}/users/").mock(
        return_value=httpx.Response(200, json=[{"pk": "U3", "username": "carol"}])
    )

    members = await _service().search("")

    assert "search" not in route.calls.last.request.url.params
    assert [member.pk for member in members] == ["U3"]


@pytest.mark.asyncio
async def test_prefetch_skips_cached_and_duplicate_ids(
    respx_mock: respx.MockRouter,
) -> None:
    route = respx_mock.get(f"{BASE_URL}/users/U1/").mock(
        return_value=httpx.Response(200, json={"pk": "U1", "username": "alice"})
    )
    service = _service()

    await service.prefetch(["U1", "U1", ""])
    await service.prefetch(["U1"])

    assert route.call_count == 1
