from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from oncall_planner.data.models.rotation import GroupList, freeze_groups
from oncall_planner.groups.flatten import (
    FlatItem,
    flatten,
    move_item,
    prune_empty,
    unflatten,
)
from oncall_planner.services.base import EventHook
from oncall_planner.utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GroupListChangedEvent:
    groups: GroupList
    reason: str


class GroupListEngine:
    """Authoritative nested member groups with drag-and-drop friendly edits.

    All indices accepted by the mutating operations are flat indices into
    :meth:`items`. They usually come from UI events that may race another
    mutation, so anything out of range is ignored instead of raising.
    """

    def __init__(
        self,
        groups: Iterable[Sequence[str]] | None = None,
        *,
        multi_group_mode: bool = False,
    ) -> None:
        self._multi_group_mode = multi_group_mode
        self._groups: list[list[str]] = prune_empty(groups or [])
        self.changed: EventHook[GroupListChangedEvent] = EventHook()

    # ----------------------------------------------------------------- Queries

    @property
    def multi_group_mode(self) -> bool:
        return self._multi_group_mode

    @property
    def groups(self) -> GroupList:
        return freeze_groups(self._groups)

    @property
    def has_members(self) -> bool:
        return any(self._groups)

    @property
    def can_add_group(self) -> bool:
        return (
            self._multi_group_mode
            and bool(self._groups)
            and bool(self._groups[-1])
        )

    def items(self) -> list[FlatItem]:
        return flatten(self._groups, self._multi_group_mode)

    def visible_items(self) -> list[tuple[int, FlatItem]]:
        """Rendered rows paired with their flat index."""
        return [
            (index, item) for index, item in enumerate(self.items()) if item.visible
        ]

    def flat_index_of(self, member_id: str) -> int | None:
        found: int | None = None
        for index, item in enumerate(self.items()):
            if item.is_member and item.member_id == member_id:
                found = index
        return found

    # ----------------------------------------------------------------- Actions

    def add_member(self, member_id: str | None) -> None:
        if not member_id:
            return
        groups = [list(group) for group in self._groups]
        if not groups:
            groups.append([])
        groups[-1].append(member_id)
        self._commit(groups, "add_member")

    def add_group(self) -> None:
        """Open an empty trailing group that receives the next added member."""
        if not self.can_add_group:
            return
        groups = [list(group) for group in self._groups]
        groups.append([])
        self._commit(groups, "add_group")

    def remove_member(self, flat_index: int) -> None:
        items = self.items()
        if not 0 <= flat_index < len(items):
            logger.debug(
                "Ignoring removal for stale index",
                flat_index=flat_index,
                size=len(items),
            )
            return
        item = items[flat_index]
        if not item.is_member:
            return
        groups = [list(group) for group in self._groups]
        del groups[item.group_index][item.position]
        self._commit(prune_empty(groups), "remove_member")

    def reorder(self, from_flat_index: int, to_flat_index: int) -> None:
        items = self.items()
        if not 0 <= from_flat_index < len(items) or to_flat_index < 0:
            logger.debug(
                "Ignoring reorder for stale index",
                from_index=from_flat_index,
                to_index=to_flat_index,
                size=len(items),
            )
            return
        if from_flat_index == to_flat_index:
            return
        item = items[from_flat_index]
        if item.is_separator and not self._multi_group_mode:
            return

        if to_flat_index >= len(items) and item.is_member and self._multi_group_mode:
            remaining = items[:from_flat_index] + items[from_flat_index + 1 :]
            moved = [*remaining, FlatItem.separator(len(self._groups)), item]
        else:
            moved = move_item(items, from_flat_index, to_flat_index)

        keep_open = bool(self._groups) and not self._groups[-1]
        groups = prune_empty(
            unflatten(moved, self._multi_group_mode),
            keep_last=keep_open,
        )
        self._commit(groups, "reorder")

    def replace(self, groups: Iterable[Sequence[str]] | None) -> None:
        """Hydrate from persisted data, dropping empty groups."""
        self._commit(prune_empty(groups or []), "replace")

    # ------------------------------------------------------------- Internals

    def _commit(self, groups: list[list[str]], reason: str) -> None:
        if groups == self._groups:
            return
        self._groups = groups
        snapshot = self.groups
        logger.debug("Group list changed", reason=reason, groups=len(snapshot))
        self.changed.emit(GroupListChangedEvent(groups=snapshot, reason=reason))


__all__ = ["GroupListChangedEvent", "GroupListEngine"]
