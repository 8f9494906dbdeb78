from __future__ import annotations

from collections.abc import Callable, Sequence

from PySide6.QtCore import (
    QAbstractListModel,
    QByteArray,
    QMimeData,
    QModelIndex,
    QPersistentModelIndex,
    Qt,
)

from oncall_planner.data import MemberProfile
from oncall_planner.groups import FlatItem, GroupListEngine
from oncall_planner.services import MemberDirectory


FLAT_ITEM_ROLE = Qt.ItemDataRole.UserRole
FLAT_INDEX_ROLE = Qt.ItemDataRole.UserRole + 1
ROW_KIND_ROLE = Qt.ItemDataRole.UserRole + 2

ROW_MIME_TYPE = "application/x-oncall-planner-row"
ADD_GROUP_LABEL = "Add user group +"

_ModelIndex = QModelIndex | QPersistentModelIndex


class GroupListModel(QAbstractListModel):
    """Drag surface over a :class:`GroupListEngine`.

    Rows are the visible flat items; in multi-group mode a trailing
    "add group" row is shown once the last group has members. Dropping a row
    onto that trailing row moves it into a new group.
    """

    def __init__(
        self,
        engine: GroupListEngine,
        directory: MemberDirectory | None = None,
    ) -> None:
        super().__init__()
        self._engine = engine
        self._directory = directory
        self._rows: list[tuple[int, FlatItem]] = engine.visible_items()
        self._show_add_row = engine.can_add_group
        self._unsubscribe: Callable[[], None] | None = engine.changed.subscribe(
            lambda _event: self.refresh()
        )

    # --------------------------------------------------------------- Qt model

    def rowCount(self, parent: _ModelIndex | None = None) -> int:  # noqa: N802
        if parent is not None and parent.isValid():
            return 0
        return len(self._rows) + (1 if self._show_add_row else 0)

    def data(self, index: _ModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # noqa: ANN201
        if not index.isValid():
            return None
        row = index.row()
        if self.is_add_row(row):
            if role == Qt.ItemDataRole.DisplayRole:
                return ADD_GROUP_LABEL
            if role == ROW_KIND_ROLE:
                return "add-group"
            return None
        if not 0 <= row < len(self._rows):
            return None
        flat_index, item = self._rows[row]
        if role == Qt.ItemDataRole.DisplayRole:
            return self._label(item)
        if role == Qt.ItemDataRole.ToolTipRole and item.is_member:
            return self._tooltip(item)
        if role == FLAT_ITEM_ROLE:
            return item
        if role == FLAT_INDEX_ROLE:
            return flat_index
        if role == ROW_KIND_ROLE:
            return item.kind.value
        return None

    def flags(self, index: _ModelIndex) -> Qt.ItemFlag:
        if not index.isValid():
            return Qt.ItemFlag.ItemIsDropEnabled
        base = Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
        if self.is_add_row(index.row()):
            return Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsDropEnabled
        return base | Qt.ItemFlag.ItemIsDragEnabled

    def supportedDropActions(self) -> Qt.DropAction:  # noqa: N802
        return Qt.DropAction.MoveAction

    def mimeTypes(self) -> list[str]:  # noqa: N802
        return [ROW_MIME_TYPE]

    def mimeData(self, indexes: Sequence[QModelIndex]) -> QMimeData:  # noqa: N802
        mime = QMimeData()
        rows = [index.row() for index in indexes if index.isValid()]
        if rows:
            mime.setData(ROW_MIME_TYPE, QByteArray(str(rows[0]).encode("ascii")))
        return mime

    def dropMimeData(  # noqa: N802
        self,
        data: QMimeData,
        action: Qt.DropAction,
        row: int,
        column: int,
        parent: _ModelIndex,
    ) -> bool:
        if action != Qt.DropAction.MoveAction or not data.hasFormat(ROW_MIME_TYPE):
            return False
        try:
            source_row = int(bytes(data.data(ROW_MIME_TYPE).data()).decode("ascii"))
        except ValueError:
            return False
        if row < 0:
            row = parent.row() if parent.isValid() else self.rowCount()
            if self.is_add_row(row):
                row += 1
        self.move_row(source_row, row)
        # The engine already applied the move; returning False stops the view
        # from removing the source row a second time.
        return False

    # ------------------------------------------------------------------ API

    def is_add_row(self, row: int) -> bool:
        return self._show_add_row and row == len(self._rows)

    def flat_index(self, row: int) -> int | None:
        if 0 <= row < len(self._rows):
            return self._rows[row][0]
        return None

    def item_at(self, row: int) -> FlatItem | None:
        if 0 <= row < len(self._rows):
            return self._rows[row][1]
        return None

    def move_row(self, source_row: int, target_row: int) -> None:
        """Move a visible row so it lands before ``target_row``.

        ``target_row == len(rows)`` drops at the end of the last group; any
        position past the "add group" row starts a new group.
        """

        source = self.flat_index(source_row)
        if source is None or target_row < 0:
            return
        total = len(self._engine.items())
        if target_row < len(self._rows):
            before = self._rows[target_row][0]
            destination = before - 1 if before > source else before
        elif target_row == len(self._rows):
            destination = total - 1
        else:
            destination = total
        self._engine.reorder(source, destination)

    def remove_row(self, row: int) -> None:
        flat_index = self.flat_index(row)
        if flat_index is None:
            return
        self._engine.remove_member(flat_index)

    def activate_row(self, row: int) -> None:
        if self.is_add_row(row):
            self._engine.add_group()

    def refresh(self) -> None:
        self.beginResetModel()
        self._rows = self._engine.visible_items()
        self._show_add_row = self._engine.can_add_group
        self.endResetModel()

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ------------------------------------------------------------- Internals

    def _label(self, item: FlatItem) -> str:
        if item.is_separator:
            return item.label
        member_id = item.member_id or ""
        profile = self._profile(member_id)
        return profile.label if profile is not None else member_id

    def _tooltip(self, item: FlatItem) -> str:
        member_id = item.member_id or ""
        profile = self._profile(member_id)
        return profile.tooltip() if profile is not None else member_id

    def _profile(self, member_id: str) -> MemberProfile | None:
        if self._directory is None:
            return None
        return self._directory.cached(member_id)


__all__ = [
    "ADD_GROUP_LABEL",
    "FLAT_INDEX_ROLE",
    "FLAT_ITEM_ROLE",
    "ROW_KIND_ROLE",
    "GroupListModel",
]
