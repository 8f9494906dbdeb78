from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

from PySide6.QtWidgets import QApplication
from qasync import QEventLoop

from oncall_planner.auth import InsecureKeyringError, SecretStore
from oncall_planner.bootstrap import build_services
from oncall_planner.config import SettingsManager
from oncall_planner.services import NEW_SHIFT_ID
from oncall_planner.utils import LoggingOptions, configure_logging, get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oncall-planner",
        description="Create or edit an on-call rotation or override with a live preview.",
    )
    parser.add_argument("--schedule", required=True, help="Schedule identifier")
    parser.add_argument(
        "--shift",
        default=NEW_SHIFT_ID,
        help=f"Shift to edit, or '{NEW_SHIFT_ID}' to create one (default)",
    )
    parser.add_argument(
        "--rotation",
        action="store_true",
        help="Edit a rolling-users rotation with multiple groups instead of an override",
    )
    parser.add_argument("--timezone", help="Display time zone (defaults to settings)")
    parser.add_argument("--debug", action="store_true", help="Verbose console logging")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(LoggingOptions(debug=args.debug))
    logger = get_logger(__name__)
    logger.info("Starting OnCall Planner", schedule=args.schedule, shift=args.shift)

    settings = SettingsManager().load()
    try:
        secret_store = SecretStore()
    except InsecureKeyringError as exc:
        logger.error("Refusing to start with insecure keyring", error=str(exc))
        raise SystemExit(2) from exc

    services = build_services(settings, secret_store)
    if services.rotations is None:
        logger.error("Rotation service unavailable; check the configured API URL")
        raise SystemExit(1)

    # Imported late so the CLI parser works without building Qt widgets.
    from oncall_planner.ui.rotations import RotationFormController, RotationFormDialog

    app = QApplication(sys.argv[:1])
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)

    controller = RotationFormController(
        schedule_id=args.schedule,
        shift_id=args.shift,
        is_override=not args.rotation,
        timezone=args.timezone or settings.timezone,
        store=services.rotations,
        previews=services.rotations,
        debounce=settings.preview_debounce_seconds,
    )
    dialog = RotationFormDialog(controller, services.members)
    dialog.finished.connect(lambda _result: app.quit())
    app.aboutToQuit.connect(loop.stop)
    loop.call_soon(dialog.start)

    try:
        with loop:
            loop.run_forever()
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")


__all__ = ["build_parser", "main"]
