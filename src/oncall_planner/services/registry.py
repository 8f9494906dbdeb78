from __future__ import annotations

from dataclasses import dataclass

from .members import MemberService
from .rotations import RotationService


@dataclass(slots=True)
class ServiceRegistry:
    """Centralised container for lazily-initialised services."""

    rotations: RotationService | None = None
    members: MemberService | None = None


__all__ = ["ServiceRegistry"]
