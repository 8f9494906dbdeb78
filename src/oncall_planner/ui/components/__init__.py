"""Reusable UI components for the OnCall Planner PySide6 application."""

from .dialogs import ask_confirmation, show_error_dialog, show_exception_dialog

__all__ = ["ask_confirmation", "show_error_dialog", "show_exception_dialog"]
