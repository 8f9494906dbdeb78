"""Bidirectional mapping between nested member groups and a flat drag sequence.

The drag surface only understands a single ordered list, so a group list such
as ``[["u1", "u2"], ["u3"]]`` is exposed as::

    [separator(0), member("u1", 0), member("u2", 0), separator(1), member("u3", 1)]

Each group's separator precedes its members. Separators are always emitted so
group boundaries survive the round trip; in single-group mode they are only
hidden from rendering.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, Sequence, TypeVar

T = TypeVar("T")


class FlatItemKind(StrEnum):
    MEMBER = "member"
    SEPARATOR = "separator"


@dataclass(frozen=True, slots=True)
class FlatItem:
    kind: FlatItemKind
    group_index: int
    member_id: str | None = None
    position: int = 0
    visible: bool = True

    @classmethod
    def separator(cls, group_index: int, *, visible: bool = True) -> "FlatItem":
        return cls(FlatItemKind.SEPARATOR, group_index, visible=visible)

    @classmethod
    def member(cls, member_id: str, group_index: int, position: int) -> "FlatItem":
        return cls(FlatItemKind.MEMBER, group_index, member_id, position)

    @property
    def is_separator(self) -> bool:
        return self.kind is FlatItemKind.SEPARATOR

    @property
    def is_member(self) -> bool:
        return self.kind is FlatItemKind.MEMBER

    @property
    def label(self) -> str:
        if self.is_separator:
            return f"Group {self.group_index + 1}"
        return self.member_id or ""


def flatten(
    groups: Sequence[Sequence[str]],
    multi_group_mode: bool = True,
) -> list[FlatItem]:
    items: list[FlatItem] = []
    for group_index, group in enumerate(groups):
        items.append(FlatItem.separator(group_index, visible=multi_group_mode))
        for position, member_id in enumerate(group):
            items.append(FlatItem.member(member_id, group_index, position))
    return items


def unflatten(
    items: Iterable[FlatItem],
    multi_group_mode: bool = True,
) -> list[list[str]]:
    """Rebuild nested groups from a flat sequence.

    A separator followed by no members yields an empty group; callers decide
    whether to keep it (see :func:`prune_empty`). Members that appear before
    any separator open an implicit first group in multi-group mode; in
    single-group mode they join the group opened by the first separator.
    """

    groups: list[list[str]] = []
    leading: list[str] = []
    for item in items:
        if item.is_separator:
            groups.append([])
            if leading and len(groups) == 1:
                groups[0].extend(leading)
                leading = []
            continue
        member_id = item.member_id or ""
        if groups:
            groups[-1].append(member_id)
        elif multi_group_mode:
            groups.append([member_id])
        else:
            leading.append(member_id)
    if leading:
        groups.append(leading)
    return groups


def prune_empty(
    groups: Iterable[Sequence[str]],
    *,
    keep_last: bool = False,
) -> list[list[str]]:
    materialised = [list(group) for group in groups]
    pruned = [group for group in materialised[:-1] if group]
    if materialised:
        last = materialised[-1]
        if last or keep_last:
            pruned.append(last)
    return pruned


def move_item(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Return a copy with one element moved; indices past the end append."""

    moved = list(items)
    if not 0 <= from_index < len(moved):
        return moved
    element = moved.pop(from_index)
    target = max(0, min(to_index, len(moved)))
    moved.insert(target, element)
    return moved


__all__ = [
    "FlatItem",
    "FlatItemKind",
    "flatten",
    "move_item",
    "prune_empty",
    "unflatten",
]
