from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Awaitable
from zoneinfo import ZoneInfo

from oncall_planner.data import Rotation, RotationParams, RotationPreview
from oncall_planner.data.models.rotation import from_utc
from oncall_planner.groups import GroupListEngine
from oncall_planner.services import (
    NEW_SHIFT_ID,
    EventHook,
    PreviewFailedEvent,
    PreviewProvider,
    PreviewSettledEvent,
    PreviewSynchronizer,
    RotationStore,
)
from oncall_planner.services.preview import DEFAULT_DEBOUNCE_SECONDS
from oncall_planner.utils import (
    BackgroundTask,
    Scheduler,
    call_later,
    get_logger,
    run_background,
)


logger = get_logger(__name__)

DEFAULT_SHIFT_LENGTH = timedelta(hours=24)


def default_shift_moment(timezone: str) -> datetime:
    """Start of tomorrow, as wall-clock time in ``timezone``."""
    now = datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return today + timedelta(days=1)


class RotationFormController:
    """Bridge between the rotation/override form and the service layer.

    Owns the group list engine and the preview synchronizer for one open form.
    Every membership or time change is turned into a new parameter snapshot
    and submitted for a debounced preview.
    """

    def __init__(
        self,
        *,
        schedule_id: str,
        store: RotationStore,
        previews: PreviewProvider,
        shift_id: str = NEW_SHIFT_ID,
        is_override: bool = True,
        timezone: str = "UTC",
        start_moment: date | datetime | None = None,
        shift_moment: datetime | None = None,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        scheduler: Scheduler = call_later,
        spawn: Callable[[Awaitable[object]], BackgroundTask] = run_background,
    ) -> None:
        self._schedule_id = schedule_id
        self._shift_id = shift_id
        self._is_override = is_override
        self._timezone = timezone
        self._store = store
        self._previews = previews
        self._start_moment = start_moment or date.today()
        self._shift_start = shift_moment or default_shift_moment(timezone)
        self._shift_end = self._shift_start + DEFAULT_SHIFT_LENGTH
        self._engine = GroupListEngine(multi_group_mode=not is_override)
        self._synchronizer: PreviewSynchronizer[RotationParams, RotationPreview] = (
            PreviewSynchronizer(
                self._fetch_preview,
                delay=debounce,
                scheduler=scheduler,
                spawn=spawn,
            )
        )
        self._preview: RotationPreview | None = None
        self._busy = False
        self._closed = False
        self.preview_visible = False

        self.preview_changed: EventHook[RotationPreview] = EventHook()
        self.preview_unavailable: EventHook[Exception] = EventHook()
        self.hydrated: EventHook[Rotation] = EventHook()
        self.created: EventHook[Rotation] = EventHook()
        self.updated: EventHook[Rotation] = EventHook()
        self.deleted: EventHook[str] = EventHook()

        self._subscriptions: list[Callable[[], None]] = [
            self._engine.changed.subscribe(lambda _event: self._push_snapshot()),
            self._synchronizer.settled.subscribe(self._handle_settled),
            self._synchronizer.failed.subscribe(self._handle_failed),
        ]

    # ----------------------------------------------------------------- Queries

    @property
    def engine(self) -> GroupListEngine:
        return self._engine

    @property
    def synchronizer(self) -> PreviewSynchronizer[RotationParams, RotationPreview]:
        return self._synchronizer

    @property
    def schedule_id(self) -> str:
        return self._schedule_id

    @property
    def shift_id(self) -> str:
        return self._shift_id

    @property
    def is_new(self) -> bool:
        return self._shift_id == NEW_SHIFT_ID

    @property
    def is_override(self) -> bool:
        return self._is_override

    @property
    def timezone(self) -> str:
        return self._timezone

    @property
    def shift_start(self) -> datetime:
        return self._shift_start

    @property
    def shift_end(self) -> datetime:
        return self._shift_end

    @property
    def preview(self) -> RotationPreview | None:
        return self._preview

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def params(self) -> RotationParams:
        return RotationParams.build(
            shift_start=self._shift_start,
            shift_end=self._shift_end,
            groups=self._engine.groups,
            timezone=self._timezone,
        )

    @property
    def show_error(self) -> bool:
        return not self._engine.has_members

    @property
    def can_delete(self) -> bool:
        return not self.is_new

    @property
    def noun(self) -> str:
        return "Override" if self._is_override else "Rotation"

    @property
    def title(self) -> str:
        return f"New {self.noun}" if self.is_new else f"Update {self.noun}"

    @property
    def submit_label(self) -> str:
        return "Create" if self.is_new else "Update"

    # ----------------------------------------------------------------- Editing

    def set_shift_start(self, value: datetime) -> None:
        if value == self._shift_start:
            return
        self._shift_start = value
        self._push_snapshot()

    def set_shift_end(self, value: datetime) -> None:
        if value == self._shift_end:
            return
        self._shift_end = value
        self._push_snapshot()

    # ----------------------------------------------------------------- Actions

    async def open(self) -> None:
        """Load the edited shift, or request the first preview for a new one."""
        if self.is_new:
            self._synchronizer.submit(self.params)
            self._synchronizer.flush()
            return
        rotation = await self._store.fetch_rotation(self._shift_id)
        self.hydrate(rotation)

    def hydrate(self, rotation: Rotation) -> None:
        self._shift_start = from_utc(rotation.shift_start, self._timezone)
        self._shift_end = from_utc(rotation.shift_end, self._timezone)
        if rotation.rolling_users == self._engine.groups:
            self._push_snapshot()
        else:
            self._engine.replace(rotation.rolling_users)
        logger.debug("Hydrated form from rotation", rotation_id=rotation.id)
        self.hydrated.emit(rotation)

    def retry_preview(self) -> None:
        """Request the preview for the current parameters again right away."""
        if self._closed:
            return
        self._synchronizer.refresh()
        self._synchronizer.flush()

    async def submit(self) -> Rotation | None:
        """Create or update the shift; a second call while one is running is ignored."""
        if self._busy or self._closed:
            return None
        params = self.params
        self._busy = True
        try:
            if self.is_new:
                rotation = await self._store.create_rotation(
                    self._schedule_id, self._is_override, params
                )
                self.created.emit(rotation)
            else:
                rotation = await self._store.update_rotation(self._shift_id, params)
                self.updated.emit(rotation)
        finally:
            self._busy = False
        self.close()
        return rotation

    async def delete(self) -> None:
        if self.is_new or self._busy or self._closed:
            return
        self._busy = True
        try:
            await self._store.delete_rotation(self._shift_id)
        finally:
            self._busy = False
        self.deleted.emit(self._shift_id)
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._synchronizer.dispose()
        while self._subscriptions:
            unsubscribe = self._subscriptions.pop()
            unsubscribe()

    # ------------------------------------------------------------- Internals

    def _push_snapshot(self) -> None:
        if self._closed:
            return
        self._synchronizer.submit(self.params)

    async def _fetch_preview(self, params: RotationParams) -> RotationPreview:
        return await self._previews.compute_preview(
            self._schedule_id,
            self._shift_id,
            self._start_moment,
            self._is_override,
            params,
        )

    def _handle_settled(
        self, event: PreviewSettledEvent[RotationParams, RotationPreview]
    ) -> None:
        self._preview = event.result
        self.preview_visible = True
        self.preview_changed.emit(event.result)

    def _handle_failed(self, event: PreviewFailedEvent[RotationParams]) -> None:
        self.preview_unavailable.emit(event.error)


__all__ = ["RotationFormController", "default_shift_moment"]
