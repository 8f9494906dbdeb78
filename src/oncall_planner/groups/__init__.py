"""Ordered multi-group membership lists and their flat drag-and-drop form."""

from .engine import GroupListChangedEvent, GroupListEngine
from .flatten import (
    FlatItem,
    FlatItemKind,
    flatten,
    move_item,
    prune_empty,
    unflatten,
)

__all__ = [
    "FlatItem",
    "FlatItemKind",
    "GroupListChangedEvent",
    "GroupListEngine",
    "flatten",
    "move_item",
    "prune_empty",
    "unflatten",
]
