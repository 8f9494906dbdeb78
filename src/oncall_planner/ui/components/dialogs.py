from __future__ import annotations

from PySide6.QtWidgets import QMessageBox, QWidget

from oncall_planner.utils.errors import describe_exception


def show_error_dialog(
    parent: QWidget | None,
    title: str,
    message: str,
    *,
    details: str | None = None,
) -> None:
    dialog = QMessageBox(
        QMessageBox.Icon.Critical,
        title,
        message,
        QMessageBox.StandardButton.Close,
        parent,
    )
    if details:
        dialog.setDetailedText(details)
    dialog.exec()


def show_exception_dialog(parent: QWidget | None, title: str, error: Exception) -> None:
    """Render ``error`` through :func:`describe_exception` in an error box."""

    descriptor = describe_exception(error)
    message = descriptor.headline
    if descriptor.suggestion:
        message = f"{message}\n\n{descriptor.suggestion}"
    show_error_dialog(parent, title, message, details=descriptor.detail)


def ask_confirmation(
    parent: QWidget | None,
    title: str,
    question: str,
    *,
    ok_label: str = "Continue",
    cancel_label: str = "Cancel",
) -> bool:
    box = QMessageBox(parent)
    box.setWindowTitle(title)
    box.setText(question)
    box.setIcon(QMessageBox.Icon.Question)
    ok_button = box.addButton(ok_label, QMessageBox.ButtonRole.AcceptRole)
    box.addButton(cancel_label, QMessageBox.ButtonRole.RejectRole)
    box.setDefaultButton(ok_button)
    box.exec()
    return box.clickedButton() is ok_button


__all__ = ["ask_confirmation", "show_error_dialog", "show_exception_dialog"]
