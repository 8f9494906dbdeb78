from __future__ import annotations

from datetime import date, datetime

import pytest
from PySide6.QtWidgets import QApplication, QDialog

from oncall_planner.services import NEW_SHIFT_ID
from oncall_planner.ui.rotations import dialog as dialog_module
from oncall_planner.ui.rotations.controller import RotationFormController
from oncall_planner.ui.rotations.dialog import RotationFormDialog, summarize_preview
from tests.factories import make_member, make_preview, make_rotation
from tests.stubs import FakeMemberDirectory, FakeRotationBackend, FakeScheduler, drain


def _dialog(
    backend: FakeRotationBackend,
    scheduler: FakeScheduler,
    *,
    shift_id: str = NEW_SHIFT_ID,
    is_override: bool = True,
    directory: FakeMemberDirectory | None = None,
) -> tuple[RotationFormDialog, RotationFormController]:
    controller = RotationFormController(
        schedule_id="SCHED",
        shift_id=shift_id,
        is_override=is_override,
        timezone="UTC",
        start_moment=date(2024, 3, 1),
        shift_moment=datetime(2024, 3, 2, 0, 0),
        store=backend,
        previews=backend,
        scheduler=scheduler,
    )
    if directory is None:
        directory = FakeMemberDirectory([make_member("U1", "alice"), make_member("U2", "bob")])
    return RotationFormDialog(controller, directory), controller


def test_summarize_preview() -> None:
    assert summarize_preview(None) == "Preview pending…"
    assert summarize_preview(make_preview()).startswith("1 shift(s)")


@pytest.mark.asyncio
async def test_dialog_opens_once_preview_settles(
    qtbot, qt_app: QApplication, scheduler: FakeScheduler
) -> None:
    backend = FakeRotationBackend(preview_result=make_preview("U1"))
    dialog, _controller = _dialog(backend, scheduler)
    qtbot.addWidget(dialog)

    assert dialog.isVisible() is False
    dialog.start()
    await drain(10)

    assert dialog.isVisible() is True
    assert dialog.windowTitle() == "New Override"
    assert dialog._preview_label.text().startswith("1 shift(s)")
    assert dialog._member_picker.count() == 2
    dialog.reject()


@pytest.mark.asyncio
async def test_add_member_from_picker_and_submit(
    qtbot, qt_app: QApplication, scheduler: FakeScheduler
) -> None:
    backend = FakeRotationBackend()
    dialog, controller = _dialog(backend, scheduler)
    qtbot.addWidget(dialog)
    dialog.start()
    await drain(10)

    assert not dialog._error_label.isHidden()
    dialog._submit_button.click()
    await drain()
    assert backend.created == []

    dialog._member_picker.setCurrentIndex(1)
    dialog._add_member_button.click()
    assert controller.engine.groups == (("U2",),)
    assert dialog._error_label.isHidden()
    assert dialog.model.rowCount() == 1

    dialog._submit_button.click()
    await drain(10)

    assert [entry[2].rolling_users for entry in backend.created] == [(("U2",),)]
    assert dialog.result() == QDialog.DialogCode.Accepted
    assert controller.closed is True


@pytest.mark.asyncio
async def test_delete_requires_confirmation(
    qtbot,
    qt_app: QApplication,
    scheduler: FakeScheduler,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    backend = FakeRotationBackend(rotations={"O1": make_rotation("O1")})
    dialog, controller = _dialog(backend, scheduler, shift_id="O1")
    qtbot.addWidget(dialog)
    answers = iter([False, True])
    monkeypatch.setattr(dialog_module, "ask_confirmation", lambda *args, **kwargs: next(answers))

    dialog.start()
    await drain(10)
    assert controller.engine.groups == (("U1",),)
    assert dialog._delete_button.isHidden() is False

    dialog._delete_button.click()
    await drain()
    assert backend.deleted == []

    dialog._delete_button.click()
    await drain(10)
    assert backend.deleted == ["O1"]
    assert dialog.result() == QDialog.DialogCode.Accepted


@pytest.mark.asyncio
async def test_persistence_error_is_shown_and_form_stays_open(
    qtbot,
    qt_app: QApplication,
    scheduler: FakeScheduler,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    backend = FakeRotationBackend(fail_with=RuntimeError("rejected"))
    dialog, controller = _dialog(backend, scheduler)
    qtbot.addWidget(dialog)
    shown: list[tuple[str, Exception]] = []
    monkeypatch.setattr(
        dialog_module,
        "show_exception_dialog",
        lambda _parent, title, error: shown.append((title, error)),
    )
    dialog.start()
    await drain(10)
    controller.engine.add_member("U1")

    dialog._submit_button.click()
    await drain(10)

    assert [(title, str(error)) for title, error in shown] == [
        ("Unable to submit shift", "rejected")
    ]
    assert controller.closed is False
    assert dialog._submit_button.isEnabled()
    dialog.reject()
    assert controller.closed is True


@pytest.mark.asyncio
async def test_period_labels_name_the_edited_kind(
    qtbot, qt_app: QApplication, scheduler: FakeScheduler
) -> None:
    override_dialog, _ = _dialog(FakeRotationBackend(), scheduler)
    rotation_dialog, _ = _dialog(FakeRotationBackend(), scheduler, is_override=False)
    qtbot.addWidget(override_dialog)
    qtbot.addWidget(rotation_dialog)

    def _labels(dialog: RotationFormDialog) -> list[str]:
        layout = dialog._times_layout
        return [
            layout.labelForField(field).text()
            for field in (dialog._start_edit, dialog._end_edit, dialog._timezone_label)
        ]

    assert _labels(override_dialog) == [
        "Override period start",
        "Override period end",
        "Time zone",
    ]
    assert _labels(rotation_dialog)[:2] == ["Rotation period start", "Rotation period end"]
    assert rotation_dialog._timezone_label.text() == "UTC (UTC+00:00)"
    override_dialog.reject()
    rotation_dialog.reject()


@pytest.mark.asyncio
async def test_retry_button_requests_preview_after_failure(
    qtbot, qt_app: QApplication, scheduler: FakeScheduler
) -> None:
    backend = FakeRotationBackend(preview_error=RuntimeError("timeout"))
    dialog, _controller = _dialog(backend, scheduler)
    qtbot.addWidget(dialog)
    dialog.start()
    await drain(10)

    assert dialog.isVisible() is True
    assert dialog._preview_label.text() == "Preview unavailable."
    assert dialog._retry_button.isHidden() is False

    backend.preview_error = None
    backend.preview_result = make_preview("U1")
    dialog._retry_button.click()
    await drain(10)

    assert len(backend.preview_calls) == 2
    assert dialog._preview_label.text().startswith("1 shift(s)")
    assert dialog._retry_button.isHidden() is True
    dialog.reject()


@pytest.mark.asyncio
async def test_hydration_prefetches_rotation_members(
    qtbot, qt_app: QApplication, scheduler: FakeScheduler
) -> None:
    backend = FakeRotationBackend(
        rotations={"R1": make_rotation("R1", groups=[["U1", "U3"], ["U1"]], override=False)}
    )
    directory = FakeMemberDirectory([make_member("U1", "alice")])
    dialog, controller = _dialog(
        backend, scheduler, shift_id="R1", is_override=False, directory=directory
    )
    qtbot.addWidget(dialog)

    dialog.start()
    await drain(10)

    assert controller.engine.groups == (("U1", "U3"), ("U1",))
    assert directory.prefetched == [["U1", "U3", "U1"]]
    assert directory.lookups == ["U3"]
    dialog.reject()
