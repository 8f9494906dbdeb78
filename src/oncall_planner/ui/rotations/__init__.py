"""Rotation and override editing form."""

from .controller import RotationFormController, default_shift_moment
from .dialog import RotationFormDialog, summarize_preview
from .models import ADD_GROUP_LABEL, GroupListModel

__all__ = [
    "ADD_GROUP_LABEL",
    "GroupListModel",
    "RotationFormController",
    "RotationFormDialog",
    "default_shift_moment",
    "summarize_preview",
]
