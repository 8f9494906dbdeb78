from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterable

from oncall_planner.data import MemberProfile, Rotation, RotationParams, RotationPreview


@dataclass(slots=True)
class _Timer:
    due: float
    sequence: int
    callback: Callable[[], None]
    cancelled: bool = False


class FakeScheduler:
    """Deterministic replacement for ``call_later`` driven by :meth:`advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[_Timer] = []
        self._sequence = 0

    def __call__(self, delay: float, callback: Callable[[], None]) -> Callable[[], None]:
        self._sequence += 1
        timer = _Timer(self.now + delay, self._sequence, callback)
        self._timers.append(timer)

        def cancel() -> None:
            timer.cancelled = True

        return cancel

    @property
    def pending(self) -> int:
        return sum(1 for timer in self._timers if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        target = round(self.now + seconds, 6)
        while True:
            due = [
                timer
                for timer in self._timers
                if not timer.cancelled and timer.due <= target + 1e-9
            ]
            if not due:
                break
            timer = min(due, key=lambda item: (item.due, item.sequence))
            self._timers.remove(timer)
            self.now = max(self.now, timer.due)
            timer.callback()
        self._timers = [timer for timer in self._timers if not timer.cancelled]
        self.now = target


@dataclass(slots=True)
class PendingCall:
    snapshot: Any
    started_at: float
    future: asyncio.Future[Any]

    def resolve(self, value: Any) -> None:
        self.future.set_result(value)

    def fail(self, error: Exception) -> None:
        self.future.set_exception(error)


class ControlledFetch:
    """Preview fetch whose responses are released by the test."""

    def __init__(self, scheduler: FakeScheduler | None = None) -> None:
        self._scheduler = scheduler
        self.calls: list[PendingCall] = []

    async def __call__(self, snapshot: Any) -> Any:
        loop = asyncio.get_running_loop()
        started_at = self._scheduler.now if self._scheduler is not None else 0.0
        call = PendingCall(snapshot, started_at, loop.create_future())
        self.calls.append(call)
        return await call.future

    @property
    def snapshots(self) -> list[Any]:
        return [call.snapshot for call in self.calls]

    @property
    def start_times(self) -> list[float]:
        return [call.started_at for call in self.calls]


async def drain(iterations: int = 5) -> None:
    """Let spawned tasks run until they block again."""

    for _ in range(iterations):
        await asyncio.sleep(0)


@dataclass
class FakeRotationBackend:
    """In-memory persistence and preview collaborator for controller tests."""

    rotations: dict[str, Rotation] = field(default_factory=dict)
    preview_calls: list[tuple[str, str, Any, bool, RotationParams]] = field(
        default_factory=list
    )
    created: list[tuple[str, bool, RotationParams]] = field(default_factory=list)
    updated: list[tuple[str, RotationParams]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    preview_result: RotationPreview = field(default_factory=RotationPreview)
    fail_with: Exception | None = None
    preview_error: Exception | None = None
    gate: asyncio.Event | None = None

    async def fetch_rotation(self, rotation_id: str) -> Rotation:
        return self.rotations[rotation_id]

    async def create_rotation(
        self, schedule_id: str, is_override: bool, params: RotationParams
    ) -> Rotation:
        await self._maybe_block()
        self.created.append((schedule_id, is_override, params))
        rotation = Rotation(
            id=f"S{len(self.created)}",
            schedule=schedule_id,
            shift_start=params.shift_start,
            shift_end=params.shift_end,
            rolling_users=params.rolling_users,
        )
        self.rotations[rotation.id] = rotation
        return rotation

    async def update_rotation(self, rotation_id: str, params: RotationParams) -> Rotation:
        await self._maybe_block()
        self.updated.append((rotation_id, params))
        rotation = self.rotations[rotation_id].model_copy(
            update={
                "shift_start": params.shift_start,
                "shift_end": params.shift_end,
                "rolling_users": params.rolling_users,
            }
        )
        self.rotations[rotation_id] = rotation
        return rotation

    async def delete_rotation(self, rotation_id: str) -> None:
        await self._maybe_block()
        self.deleted.append(rotation_id)
        self.rotations.pop(rotation_id, None)

    async def compute_preview(
        self,
        schedule_id: str,
        rotation_id: str,
        reference: date | datetime,
        is_override: bool,
        params: RotationParams,
    ) -> RotationPreview:
        self.preview_calls.append((schedule_id, rotation_id, reference, is_override, params))
        if self.preview_error is not None:
            raise self.preview_error
        return self.preview_result

    async def _maybe_block(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with


class FakeMemberDirectory:
    def __init__(self, members: list[MemberProfile] | None = None) -> None:
        self._members = {member.pk: member for member in members or []}
        self.lookups: list[str] = []
        self.prefetched: list[list[str]] = []

    def cached(self, member_id: str) -> MemberProfile | None:
        return self._members.get(member_id)

    async def lookup(self, member_id: str) -> MemberProfile | None:
        self.lookups.append(member_id)
        return self._members.get(member_id)

    async def prefetch(self, member_ids: Iterable[str]) -> None:
        ids = list(member_ids)
        self.prefetched.append(ids)
        for member_id in dict.fromkeys(ids):
            if member_id not in self._members:
                await self.lookup(member_id)

    async def search(self, query: str) -> list[MemberProfile]:
        return [
            member
            for member in self._members.values()
            if query.lower() in member.username.lower()
        ]
