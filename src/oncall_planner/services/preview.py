from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import Awaitable, Callable, Generic, TypeVar

from oncall_planner.services.base import EventHook
from oncall_planner.utils import (
    BackgroundTask,
    Scheduler,
    call_later,
    get_logger,
    run_background,
)


logger = get_logger(__name__)

SnapshotT = TypeVar("SnapshotT")
ResultT = TypeVar("ResultT")

DEFAULT_DEBOUNCE_SECONDS = 0.2


class PreviewPhase(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SETTLED = "settled"


@dataclass(frozen=True, slots=True)
class PreviewState(Generic[SnapshotT, ResultT]):
    phase: PreviewPhase
    snapshot: SnapshotT | None = None
    result: ResultT | None = None


@dataclass(frozen=True, slots=True)
class PreviewSettledEvent(Generic[SnapshotT, ResultT]):
    snapshot: SnapshotT
    result: ResultT
    generation: int


@dataclass(frozen=True, slots=True)
class PreviewFailedEvent(Generic[SnapshotT]):
    snapshot: SnapshotT
    error: Exception
    generation: int


class PreviewSynchronizer(Generic[SnapshotT, ResultT]):
    """Debounce parameter snapshots into at most one outstanding preview request.

    Each :meth:`submit` of a changed snapshot bumps a generation counter and
    restarts the single debounce timer. When the timer elapses the current
    target is fetched. A response is applied only if its generation is still
    current; older responses are dropped without touching state, so the
    transport never needs to support cancellation. A timer that elapses while
    an older request is outstanding defers its dispatch until that request
    returns.
    """

    def __init__(
        self,
        fetch: Callable[[SnapshotT], Awaitable[ResultT]],
        *,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        scheduler: Scheduler = call_later,
        spawn: Callable[[Awaitable[object]], BackgroundTask] = run_background,
    ) -> None:
        self._fetch = fetch
        self._delay = delay
        self._scheduler = scheduler
        self._spawn = spawn
        self._phase = PreviewPhase.IDLE
        self._target: SnapshotT | None = None
        self._result: ResultT | None = None
        self._generation = 0
        self._cancel_timer: Callable[[], None] | None = None
        self._request: BackgroundTask | None = None
        self._dispatch_deferred = False
        self._disposed = False
        self.settled: EventHook[PreviewSettledEvent[SnapshotT, ResultT]] = EventHook()
        self.failed: EventHook[PreviewFailedEvent[SnapshotT]] = EventHook()

    # ----------------------------------------------------------------- Queries

    @property
    def state(self) -> PreviewState[SnapshotT, ResultT]:
        result = self._result if self._phase is PreviewPhase.SETTLED else None
        return PreviewState(self._phase, self._target, result)

    @property
    def phase(self) -> PreviewPhase:
        return self._phase

    @property
    def target(self) -> SnapshotT | None:
        return self._target

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        return self._request is not None

    @property
    def timer_pending(self) -> bool:
        return self._cancel_timer is not None

    # ----------------------------------------------------------------- Actions

    def submit(self, snapshot: SnapshotT) -> bool:
        """Register a new target snapshot; returns False when nothing changed."""
        if self._disposed:
            return False
        if self._phase is not PreviewPhase.IDLE and snapshot == self._target:
            return False
        self._target = snapshot
        self._mark_pending()
        return True

    def refresh(self) -> None:
        """Request the current target again even though it did not change."""
        if self._disposed or self._target is None:
            return
        self._mark_pending()

    def flush(self) -> None:
        """Dispatch a pending snapshot immediately instead of waiting."""
        if self._phase is not PreviewPhase.PENDING or self._cancel_timer is None:
            return
        self._clear_timer()
        self._on_timer()

    def dispose(self) -> None:
        """Stop the timer and abandon any outstanding request."""
        self._disposed = True
        self._dispatch_deferred = False
        self._clear_timer()
        if self._request is not None:
            self._request.cancel()

    # ------------------------------------------------------------- Internals

    def _mark_pending(self) -> None:
        self._generation += 1
        self._phase = PreviewPhase.PENDING
        self._result = None
        self._dispatch_deferred = False
        self._clear_timer()
        self._cancel_timer = self._scheduler(self._delay, self._on_timer)

    def _clear_timer(self) -> None:
        if self._cancel_timer is not None:
            cancel, self._cancel_timer = self._cancel_timer, None
            cancel()

    def _on_timer(self) -> None:
        self._cancel_timer = None
        if self._disposed or self._phase is not PreviewPhase.PENDING:
            return
        if self._request is not None:
            logger.debug(
                "Preview dispatch deferred behind outstanding request",
                generation=self._generation,
            )
            self._dispatch_deferred = True
            return
        self._dispatch()

    def _dispatch(self) -> None:
        snapshot = self._target
        if snapshot is None:
            return
        generation = self._generation
        self._phase = PreviewPhase.IN_FLIGHT
        logger.debug("Requesting preview", generation=generation)
        self._request = self._spawn(self._run(snapshot, generation))

    async def _run(self, snapshot: SnapshotT, generation: int) -> None:
        try:
            try:
                result = await self._fetch(snapshot)
            finally:
                self._request = None
        except asyncio.CancelledError:
            if self._is_current(generation):
                self._phase = PreviewPhase.PENDING
            raise
        except Exception as exc:  # noqa: BLE001 - preview failures are transient
            self._handle_failure(snapshot, generation, exc)
        else:
            self._handle_result(snapshot, generation, result)
        finally:
            self._resume_deferred()

    def _resume_deferred(self) -> None:
        if not self._dispatch_deferred or self._disposed:
            return
        self._dispatch_deferred = False
        if self._phase is PreviewPhase.PENDING:
            self._dispatch()

    def _is_current(self, generation: int) -> bool:
        return not self._disposed and generation == self._generation

    def _handle_result(
        self, snapshot: SnapshotT, generation: int, result: ResultT
    ) -> None:
        if not self._is_current(generation):
            logger.debug(
                "Discarding stale preview",
                generation=generation,
                current=self._generation,
            )
            return
        self._phase = PreviewPhase.SETTLED
        self._result = result
        self.settled.emit(PreviewSettledEvent(snapshot, result, generation))

    def _handle_failure(
        self, snapshot: SnapshotT, generation: int, error: Exception
    ) -> None:
        if not self._is_current(generation):
            logger.debug("Ignoring failure of stale preview", generation=generation)
            return
        logger.warning(
            "Preview request failed; waiting for next change",
            generation=generation,
            error=str(error),
        )
        self._phase = PreviewPhase.PENDING
        self.failed.emit(PreviewFailedEvent(snapshot, error, generation))


__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "PreviewFailedEvent",
    "PreviewPhase",
    "PreviewSettledEvent",
    "PreviewState",
    "PreviewSynchronizer",
]
