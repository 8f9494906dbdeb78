from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from PySide6.QtWidgets import QApplication

from tests.stubs import ControlledFetch, FakeScheduler


os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qt_app() -> Iterator[QApplication]:
    """Ensure a QApplication instance exists for UI tests."""

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Manually advanced clock standing in for ``loop.call_later``."""

    return FakeScheduler()


@pytest.fixture
def controlled_fetch(scheduler: FakeScheduler) -> ControlledFetch:
    return ControlledFetch(scheduler)
