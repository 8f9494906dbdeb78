from __future__ import annotations

from typing import Iterable, Protocol

from oncall_planner.api.client import OnCallClient
from oncall_planner.api.errors import ApiErrorCategory, OnCallAPIError
from oncall_planner.data import MemberProfile
from oncall_planner.utils import get_logger


logger = get_logger(__name__)


class MemberDirectory(Protocol):
    """Resolves member identifiers to display metadata for rendering."""

    def cached(self, member_id: str) -> MemberProfile | None: ...

    async def lookup(self, member_id: str) -> MemberProfile | None: ...

    async def search(self, query: str) -> list[MemberProfile]: ...

    async def prefetch(self, member_ids: Iterable[str]) -> None: ...


class MemberService:
    """Member lookup against the users endpoint with an in-memory cache."""

    def __init__(self, client: OnCallClient) -> None:
        self._client = client
        self._cache: dict[str, MemberProfile] = {}

    def cached(self, member_id: str) -> MemberProfile | None:
        return self._cache.get(member_id)

    def remember(self, members: Iterable[MemberProfile]) -> None:
        for member in members:
            self._cache[member.pk] = member

    async def lookup(self, member_id: str) -> MemberProfile | None:
        if not member_id:
            return None
        cached = self._cache.get(member_id)
        if cached is not None:
            return cached
        try:
            payload = await self._client.request_json("GET", f"/users/{member_id}/")
        except OnCallAPIError as exc:
            if exc.category is ApiErrorCategory.NOT_FOUND:
                logger.debug("Member not found", member_id=member_id)
                return None
            raise
        member = MemberProfile.from_api(payload)
        self._cache[member.pk] = member
        return member

    async def prefetch(self, member_ids: Iterable[str]) -> None:
        """Resolve every uncached id once, in order."""
        for member_id in dict.fromkeys(member_ids):
            if member_id and member_id not in self._cache:
                await self.lookup(member_id)

    async def search(self, query: str) -> list[MemberProfile]:
        params = {"search": query.strip()} if query and query.strip() else None
        payload = await self._client.request_json("GET", "/users/", params=params)
        raw_items = payload.get("results", []) if isinstance(payload, dict) else payload
        members = [MemberProfile.from_api(item) for item in raw_items or []]
        self.remember(members)
        return members


__all__ = ["MemberDirectory", "MemberService"]
