"""Business logic service layer for OnCall Planner."""

from .base import EventHook, MutationStatus, ServiceErrorEvent, run_optimistic_mutation
from .members import MemberDirectory, MemberService
from .preview import (
    PreviewFailedEvent,
    PreviewPhase,
    PreviewSettledEvent,
    PreviewState,
    PreviewSynchronizer,
)
from .registry import ServiceRegistry
from .rotations import (
    NEW_SHIFT_ID,
    PreviewProvider,
    RotationMutationEvent,
    RotationService,
    RotationStore,
)

__all__ = [
    "EventHook",
    "MutationStatus",
    "ServiceErrorEvent",
    "run_optimistic_mutation",
    "MemberDirectory",
    "MemberService",
    "PreviewFailedEvent",
    "PreviewPhase",
    "PreviewSettledEvent",
    "PreviewState",
    "PreviewSynchronizer",
    "ServiceRegistry",
    "NEW_SHIFT_ID",
    "PreviewProvider",
    "RotationMutationEvent",
    "RotationService",
    "RotationStore",
]
