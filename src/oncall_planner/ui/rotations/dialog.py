from __future__ import annotations

from datetime import datetime

from PySide6.QtCore import QDate, QDateTime, Qt, QTime
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QDateTimeEdit,
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QListView,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from oncall_planner.data import (
    MemberProfile,
    Rotation,
    RotationPreview,
    format_utc_offset,
)
from oncall_planner.services import MemberDirectory
from oncall_planner.ui.components import ask_confirmation, show_exception_dialog
from oncall_planner.utils import AsyncBridge, get_logger

from .controller import RotationFormController
from .models import GroupListModel


logger = get_logger(__name__)

DATETIME_FORMAT = "yyyy-MM-dd HH:mm"


def _to_qdatetime(value: datetime) -> QDateTime:
    return QDateTime(
        QDate(value.year, value.month, value.day),
        QTime(value.hour, value.minute, value.second),
    )


def _from_qdatetime(value: QDateTime) -> datetime:
    qdate = value.date()
    qtime = value.time()
    return datetime(
        qdate.year(),
        qdate.month(),
        qdate.day(),
        qtime.hour(),
        qtime.minute(),
        qtime.second(),
    )


def _timezone_text(timezone: str) -> str:
    offset = format_utc_offset(timezone)
    return f"{timezone} ({offset})" if offset else timezone


def summarize_preview(preview: RotationPreview | None) -> str:
    if preview is None:
        return "Preview pending…"
    if preview.is_empty:
        return "No shifts in the preview window."
    shifts = len(preview.rotation)
    final = len(preview.final)
    return f"{shifts} shift(s) generated · {final} event(s) in the final schedule"


class RotationFormDialog(QDialog):
    """Create, edit or delete a rotation or override.

    The dialog stays hidden until the first preview for the form arrives.
    """

    def __init__(
        self,
        controller: RotationFormController,
        directory: MemberDirectory | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._controller = controller
        self._directory = directory
        self._bridge = AsyncBridge()
        self._bridge.task_completed.connect(self._handle_async_result)
        self._lookup_bridge = AsyncBridge()
        self._lookup_bridge.task_completed.connect(self._handle_lookup_result)
        self._pending_action: str | None = None

        self.setWindowTitle(controller.title)
        self.setModal(True)

        self._model = GroupListModel(controller.engine, directory)

        self._members_view = QListView()
        self._members_view.setObjectName("RotationMembersView")
        self._members_view.setModel(self._model)
        self._members_view.setDragEnabled(True)
        self._members_view.setAcceptDrops(True)
        self._members_view.setDropIndicatorShown(True)
        self._members_view.setDragDropMode(QAbstractItemView.DragDropMode.DragDrop)
        self._members_view.setDefaultDropAction(Qt.DropAction.MoveAction)
        self._members_view.doubleClicked.connect(
            lambda index: self._model.activate_row(index.row())
        )

        self._member_picker = QComboBox()
        self._member_picker.setObjectName("RotationMemberPicker")
        self._member_picker.setEditable(True)
        self._member_picker.setPlaceholderText("Add user")
        self._add_member_button = QPushButton("Add")
        self._add_group_button = QPushButton("Add user group")
        self._add_group_button.setVisible(controller.engine.multi_group_mode)
        self._remove_button = QPushButton("Remove")

        self._error_label = QLabel("User(s) required")
        self._error_label.setObjectName("RotationMembersError")
        self._error_label.setProperty("class", "error-text")

        self._start_edit = QDateTimeEdit(_to_qdatetime(controller.shift_start))
        self._start_edit.setDisplayFormat(DATETIME_FORMAT)
        self._start_edit.setCalendarPopup(True)
        self._end_edit = QDateTimeEdit(_to_qdatetime(controller.shift_end))
        self._end_edit.setDisplayFormat(DATETIME_FORMAT)
        self._end_edit.setCalendarPopup(True)
        self._timezone_label = QLabel(_timezone_text(controller.timezone))

        self._preview_label = QLabel(summarize_preview(None))
        self._preview_label.setObjectName("RotationPreviewSummary")
        self._preview_label.setWordWrap(True)
        self._retry_button = QPushButton("Retry preview")
        self._retry_button.setVisible(False)

        self._submit_button = QPushButton(controller.submit_label)
        self._submit_button.setDefault(True)
        self._delete_button = QPushButton("Delete")
        self._delete_button.setVisible(controller.can_delete)
        self._cancel_button = QPushButton("Cancel")

        picker_row = QHBoxLayout()
        picker_row.addWidget(self._member_picker, 1)
        picker_row.addWidget(self._add_member_button)

        list_actions = QHBoxLayout()
        list_actions.addWidget(self._add_group_button)
        list_actions.addStretch()
        list_actions.addWidget(self._remove_button)

        self._times_layout = QFormLayout()
        self._times_layout.addRow(f"{controller.noun} period start", self._start_edit)
        self._times_layout.addRow(f"{controller.noun} period end", self._end_edit)
        self._times_layout.addRow("Time zone", self._timezone_label)

        preview_row = QHBoxLayout()
        preview_row.addWidget(self._preview_label, 1)
        preview_row.addWidget(self._retry_button)

        buttons = QHBoxLayout()
        buttons.addWidget(self._delete_button)
        buttons.addStretch()
        buttons.addWidget(self._cancel_button)
        buttons.addWidget(self._submit_button)

        layout = QVBoxLayout(self)
        layout.addLayout(self._times_layout)
        layout.addLayout(picker_row)
        layout.addWidget(self._members_view, 1)
        layout.addWidget(self._error_label)
        layout.addLayout(list_actions)
        layout.addLayout(preview_row)
        layout.addLayout(buttons)

        self._add_member_button.clicked.connect(self._handle_add_member)
        self._add_group_button.clicked.connect(self._handle_add_group)
        self._remove_button.clicked.connect(self._handle_remove)
        self._retry_button.clicked.connect(controller.retry_preview)
        self._start_edit.dateTimeChanged.connect(
            lambda value: controller.set_shift_start(_from_qdatetime(value))
        )
        self._end_edit.dateTimeChanged.connect(
            lambda value: controller.set_shift_end(_from_qdatetime(value))
        )
        self._submit_button.clicked.connect(self._handle_submit)
        self._delete_button.clicked.connect(self._handle_delete)
        self._cancel_button.clicked.connect(self.reject)

        self._subscriptions = [
            controller.preview_changed.subscribe(self._handle_preview),
            controller.preview_unavailable.subscribe(self._handle_preview_failed),
            controller.hydrated.subscribe(self._handle_hydrated),
            controller.engine.changed.subscribe(lambda _event: self._sync_state()),
        ]
        self._sync_state()

    # ----------------------------------------------------------------- Public

    @property
    def model(self) -> GroupListModel:
        return self._model

    def start(self) -> None:
        """Open the form; the dialog becomes visible once a preview is ready."""
        self._run_action("open", self._controller.open())
        if self._directory is not None:
            self._lookup_bridge.run_coroutine(self._directory.search(""))

    def done(self, result: int) -> None:  # noqa: D401 - Qt override
        self._teardown()
        super().done(result)

    # ----------------------------------------------------------------- Events

    def _handle_preview(self, preview: RotationPreview) -> None:
        self._preview_label.setText(summarize_preview(preview))
        self._retry_button.setVisible(False)
        if not self.isVisible():
            self.show()

    def _handle_preview_failed(self, error: Exception) -> None:
        logger.warning("Preview unavailable", error=str(error))
        self._preview_label.setText("Preview unavailable.")
        self._retry_button.setVisible(True)
        if not self.isVisible():
            self.show()

    def _handle_hydrated(self, rotation: Rotation) -> None:
        for edit, value in (
            (self._start_edit, self._controller.shift_start),
            (self._end_edit, self._controller.shift_end),
        ):
            edit.blockSignals(True)
            edit.setDateTime(_to_qdatetime(value))
            edit.blockSignals(False)
        if self._directory is not None:
            member_ids = [member for group in rotation.rolling_users for member in group]
            self._lookup_bridge.run_coroutine(self._directory.prefetch(member_ids))

    def _handle_add_member(self) -> None:
        member_id = self._member_picker.currentData()
        if member_id is None:
            member_id = self._member_picker.currentText().strip()
        if member_id:
            self._controller.engine.add_member(str(member_id))

    def _handle_add_group(self) -> None:
        self._controller.engine.add_group()

    def _handle_remove(self) -> None:
        index = self._members_view.currentIndex()
        if index.isValid():
            self._model.remove_row(index.row())

    def _handle_submit(self) -> None:
        if self._controller.show_error:
            self._sync_state()
            return
        self._run_action("submit", self._controller.submit())

    def _handle_delete(self) -> None:
        noun = self._controller.noun.lower()
        if not ask_confirmation(
            self,
            f"Delete {noun}",
            f"Are you sure you want to delete this {noun}?",
            ok_label="Delete",
        ):
            return
        self._run_action("delete", self._controller.delete())

    # ------------------------------------------------------------------ Async

    def _run_action(self, action: str, coro) -> None:  # noqa: ANN001
        if self._pending_action is not None:
            coro.close()
            return
        self._pending_action = action
        self._set_busy(True)
        self._bridge.run_coroutine(coro)

    def _handle_async_result(self, result: object, error: object) -> None:
        action = self._pending_action
        if action is None:
            return
        self._pending_action = None
        self._set_busy(False)
        if isinstance(error, Exception):
            logger.error("Rotation form action failed", action=action, error=str(error))
            if action == "open":
                self.show()
            show_exception_dialog(self, f"Unable to {action} shift", error)
            return
        if action in {"submit", "delete"} and self._controller.closed:
            self.accept()

    def _handle_lookup_result(self, result: object, error: object) -> None:
        if isinstance(error, Exception):
            logger.warning("Member lookup failed", error=str(error))
            return
        if isinstance(result, list):
            self._populate_picker(
                [item for item in result if isinstance(item, MemberProfile)]
            )
        self._model.refresh()

    # -------------------------------------------------------------- Rendering

    def _populate_picker(self, members: list[MemberProfile]) -> None:
        self._member_picker.clear()
        for member in members:
            self._member_picker.addItem(member.label, member.pk)
        self._member_picker.setCurrentIndex(-1)

    def _sync_state(self) -> None:
        engine = self._controller.engine
        self._error_label.setVisible(self._controller.show_error)
        self._add_group_button.setEnabled(engine.can_add_group)

    def _set_busy(self, busy: bool) -> None:
        for widget in (self._submit_button, self._delete_button, self._cancel_button):
            widget.setEnabled(not busy)

    def _teardown(self) -> None:
        while self._subscriptions:
            self._subscriptions.pop()()
        self._model.dispose()
        self._controller.close()


__all__ = ["RotationFormDialog", "summarize_preview"]
