"""Shared utility helpers for OnCall Planner."""

from .asyncio import AsyncBridge, Scheduler, call_later
from .background import BackgroundTask, run_background
from .logging import LoggingOptions, configure_logging, get_logger, log_file_path

__all__ = [
    "LoggingOptions",
    "configure_logging",
    "get_logger",
    "log_file_path",
    "AsyncBridge",
    "Scheduler",
    "call_later",
    "BackgroundTask",
    "run_background",
]
