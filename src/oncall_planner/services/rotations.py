from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol

from oncall_planner.api.client import OnCallClient
from oncall_planner.data import Rotation, RotationParams, RotationPreview, RotationType
from oncall_planner.services.base import (
    EventHook,
    MutationStatus,
    ServiceErrorEvent,
    run_optimistic_mutation,
)
from oncall_planner.utils import get_logger


logger = get_logger(__name__)

NEW_SHIFT_ID = "new"


class RotationStore(Protocol):
    async def fetch_rotation(self, rotation_id: str) -> Rotation: ...

    async def create_rotation(
        self, schedule_id: str, is_override: bool, params: RotationParams
    ) -> Rotation: ...

    async def update_rotation(
        self, rotation_id: str, params: RotationParams
    ) -> Rotation: ...

    async def delete_rotation(self, rotation_id: str) -> None: ...


class PreviewProvider(Protocol):
    async def compute_preview(
        self,
        schedule_id: str,
        rotation_id: str,
        reference: date | datetime,
        is_override: bool,
        params: RotationParams,
    ) -> RotationPreview: ...


@dataclass(slots=True)
class RotationMutationEvent:
    action: str
    rotation_id: str | None
    status: MutationStatus
    error: Exception | None = None


def reference_date(reference: date | datetime) -> str:
    if isinstance(reference, datetime):
        reference = reference.date()
    return reference.isoformat()


class RotationService:
    """Persist rotations/overrides and compute schedule previews."""

    def __init__(self, client: OnCallClient) -> None:
        self._client = client
        self.mutations: EventHook[RotationMutationEvent] = EventHook()
        self.errors: EventHook[ServiceErrorEvent] = EventHook()

    async def fetch_rotation(self, rotation_id: str) -> Rotation:
        payload = await self._client.request_json("GET", f"/oncall_shifts/{rotation_id}/")
        return Rotation.from_api(payload)

    async def create_rotation(
        self, schedule_id: str, is_override: bool, params: RotationParams
    ) -> Rotation:
        body = {
            "type": int(RotationType.for_form(is_override)),
            "schedule": schedule_id,
            **params.to_api(),
        }

        async def operation() -> Rotation:
            payload = await self._client.request_json(
                "POST", "/oncall_shifts/", json_body=body
            )
            return Rotation.from_api(payload)

        rotation = await self._mutate("create", None, operation)
        logger.info(
            "Created rotation",
            rotation_id=rotation.id,
            schedule_id=schedule_id,
            override=is_override,
        )
        return rotation

    async def update_rotation(
        self, rotation_id: str, params: RotationParams
    ) -> Rotation:
        async def operation() -> Rotation:
            payload = await self._client.request_json(
                "PUT", f"/oncall_shifts/{rotation_id}/", json_body=params.to_api()
            )
            return Rotation.from_api(payload)

        rotation = await self._mutate("update", rotation_id, operation)
        logger.info("Updated rotation", rotation_id=rotation_id)
        return rotation

    async def delete_rotation(self, rotation_id: str) -> None:
        async def operation() -> None:
            await self._client.request_json("DELETE", f"/oncall_shifts/{rotation_id}/")

        await self._mutate("delete", rotation_id, operation)
        logger.info("Deleted rotation", rotation_id=rotation_id)

    async def compute_preview(
        self,
        schedule_id: str,
        rotation_id: str,
        reference: date | datetime,
        is_override: bool,
        params: RotationParams,
    ) -> RotationPreview:
        body: dict[str, Any] = {
            "type": int(RotationType.for_form(is_override)),
            "schedule": schedule_id,
            "shift_pk": None if rotation_id == NEW_SHIFT_ID else rotation_id,
            **params.to_api(),
        }
        payload = await self._client.request_json(
            "POST",
            "/oncall_shifts/preview/",
            params={"date": reference_date(reference)},
            json_body=body,
        )
        return RotationPreview.from_api(payload or {})

    async def _mutate(self, action, rotation_id, operation):  # noqa: ANN001, ANN202
        def event_builder(
            status: MutationStatus, error: Exception | None
        ) -> RotationMutationEvent:
            return RotationMutationEvent(
                action=action,
                rotation_id=rotation_id,
                status=status,
                error=error,
            )

        try:
            return await run_optimistic_mutation(
                emitter=self.mutations,
                event_builder=event_builder,
                operation=operation,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Rotation mutation failed", action=action, rotation_id=rotation_id
            )
            self.errors.emit(ServiceErrorEvent(operation=action, error=exc))
            raise


__all__ = [
    "NEW_SHIFT_ID",
    "PreviewProvider",
    "RotationMutationEvent",
    "RotationService",
    "RotationStore",
    "reference_date",
]
