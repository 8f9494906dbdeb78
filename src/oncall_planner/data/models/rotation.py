from __future__ import annotations

from datetime import UTC, datetime
from enum import IntEnum
from typing import Any, Iterable, Sequence
from zoneinfo import ZoneInfo

from pydantic import Field, field_serializer, field_validator

from .common import ApiBaseModel

GroupList = tuple[tuple[str, ...], ...]


class RotationType(IntEnum):
    ROLLING_USERS = 2
    OVERRIDE = 3

    @classmethod
    def for_form(cls, is_override: bool) -> "RotationType":
        return cls.OVERRIDE if is_override else cls.ROLLING_USERS


def to_utc(value: datetime, timezone: str) -> datetime:
    """Interpret naive wall-clock ``value`` in ``timezone`` and convert to UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(timezone))
    return value.astimezone(UTC)


def from_utc(value: datetime, timezone: str) -> datetime:
    """Convert an aware timestamp to naive wall-clock time in ``timezone``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(ZoneInfo(timezone)).replace(tzinfo=None)


def format_utc(value: datetime) -> str:
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def freeze_groups(groups: Iterable[Iterable[str]] | None) -> GroupList:
    if not groups:
        return ()
    return tuple(tuple(str(member) for member in group) for group in groups)


class RotationParams(ApiBaseModel):
    """Immutable parameter snapshot pushed to preview and persistence calls."""

    rotation_start: datetime
    shift_start: datetime
    shift_end: datetime
    rolling_users: GroupList = ()
    frequency: int | None = None

    @field_validator("rolling_users", mode="before")
    @classmethod
    def _freeze_rolling_users(cls, value: Any) -> GroupList:
        return freeze_groups(value)

    @field_serializer("rotation_start", "shift_start", "shift_end")
    def _serialize_instant(self, value: datetime) -> str:
        return format_utc(value)

    @field_serializer("rolling_users")
    def _serialize_groups(self, value: GroupList) -> list[list[str]]:
        return [list(group) for group in value]

    @classmethod
    def build(
        cls,
        *,
        shift_start: datetime,
        shift_end: datetime,
        groups: Sequence[Sequence[str]],
        timezone: str,
        frequency: int | None = None,
    ) -> "RotationParams":
        start = to_utc(shift_start, timezone)
        return cls(
            rotation_start=start,
            shift_start=start,
            shift_end=to_utc(shift_end, timezone),
            rolling_users=groups,
            frequency=frequency,
        )


class Rotation(ApiBaseModel):
    """Persisted on-call shift (rotation layer entry or override)."""

    id: str
    schedule: str | None = None
    type: RotationType = RotationType.OVERRIDE
    rotation_start: datetime | None = None
    shift_start: datetime
    shift_end: datetime
    rolling_users: GroupList = ()
    frequency: int | None = None
    priority_level: int | None = None

    @field_validator("rolling_users", mode="before")
    @classmethod
    def _freeze_rolling_users(cls, value: Any) -> GroupList:
        return freeze_groups(value)

    @property
    def is_override(self) -> bool:
        return self.type == RotationType.OVERRIDE


class PreviewUser(ApiBaseModel):
    pk: str
    display_name: str | None = None


class PreviewEvent(ApiBaseModel):
    start: datetime
    end: datetime
    users: list[PreviewUser] = Field(default_factory=list)
    shift_pk: str | None = Field(default=None, alias="shift")
    priority_level: int | None = None
    is_gap: bool = False
    is_empty: bool = False

    @field_validator("shift_pk", mode="before")
    @classmethod
    def _coerce_shift(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("pk")
        return value


class RotationPreview(ApiBaseModel):
    """Server-computed schedule preview for one parameter snapshot."""

    rotation: list[PreviewEvent] = Field(default_factory=list)
    final: list[PreviewEvent] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.rotation or self.final)


__all__ = [
    "GroupList",
    "PreviewEvent",
    "PreviewUser",
    "Rotation",
    "RotationParams",
    "RotationPreview",
    "RotationType",
    "format_utc",
    "freeze_groups",
    "from_utc",
    "to_utc",
]
