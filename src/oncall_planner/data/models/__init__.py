"""Domain models for the on-call scheduling API."""

from .common import ApiBaseModel
from .member import MemberProfile, WorkingInterval, format_utc_offset
from .rotation import (
    GroupList,
    PreviewEvent,
    PreviewUser,
    Rotation,
    RotationParams,
    RotationPreview,
    RotationType,
    format_utc,
    freeze_groups,
    from_utc,
    to_utc,
)

__all__ = [
    "ApiBaseModel",
    "MemberProfile",
    "WorkingInterval",
    "GroupList",
    "PreviewEvent",
    "PreviewUser",
    "Rotation",
    "RotationParams",
    "RotationPreview",
    "RotationType",
    "format_utc",
    "format_utc_offset",
    "freeze_groups",
    "from_utc",
    "to_utc",
]
