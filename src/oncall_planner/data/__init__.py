"""Data layer: pydantic models for rotations, previews and members."""

from .models import (
    ApiBaseModel,
    GroupList,
    MemberProfile,
    PreviewEvent,
    PreviewUser,
    Rotation,
    RotationParams,
    RotationPreview,
    RotationType,
    WorkingInterval,
    format_utc_offset,
)

__all__ = [
    "ApiBaseModel",
    "GroupList",
    "MemberProfile",
    "PreviewEvent",
    "PreviewUser",
    "Rotation",
    "RotationParams",
    "RotationPreview",
    "RotationType",
    "WorkingInterval",
    "format_utc_offset",
]
