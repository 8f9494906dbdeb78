from __future__ import annotations

import asyncio
import socket
from dataclasses import dataclass
from enum import Enum

import httpx

from oncall_planner.api.errors import ApiErrorCategory, OnCallAPIError


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ErrorDescriptor:
    headline: str
    detail: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    transient: bool = False
    suggestion: str | None = None


def describe_exception(error: Exception) -> ErrorDescriptor:
    """Translate an exception into user-facing text for dialogs and toasts."""

    descriptor = ErrorDescriptor(
        headline="Operation failed.",
        detail=f"{type(error).__name__}: {error}",
        severity=ErrorSeverity.ERROR,
        transient=False,
    )

    api_error = _locate_api_error(error)
    if api_error is not None:
        descriptor.detail = _format_api_detail(api_error)
        descriptor.suggestion = api_error.recovery_suggestion
        descriptor.transient = api_error.is_retriable
        if api_error.is_retriable:
            descriptor.severity = ErrorSeverity.WARNING
        descriptor.headline = _api_headline(api_error)
        return descriptor

    root = _unwrap_error(error)

    if isinstance(root, httpx.TimeoutException):
        descriptor.headline = "Timed out contacting the scheduling API."
        descriptor.detail = f"{type(root).__name__}: {root}"
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Check your network connection and retry shortly."
        return descriptor

    if isinstance(root, asyncio.TimeoutError):
        descriptor.headline = "Operation timed out before the server responded."
        descriptor.detail = "asyncio.TimeoutError: Operation timed out"
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Retry the request after verifying connectivity."
        return descriptor

    if isinstance(root, socket.gaierror):
        descriptor.headline = "DNS lookup failed while contacting the scheduling API."
        descriptor.detail = f"socket.gaierror: {root}"
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Verify the API URL in settings."
        return descriptor

    return descriptor


def _locate_api_error(error: Exception) -> OnCallAPIError | None:
    current: BaseException | None = error
    visited: set[int] = set()
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        if isinstance(current, OnCallAPIError):
            return current
        current = current.__cause__ or current.__context__
    return None


def _unwrap_error(error: Exception) -> BaseException:
    current: BaseException = error
    visited: set[int] = set()
    while True:
        visited.add(id(current))
        inner = current.__cause__ or current.__context__
        if inner is None or id(inner) in visited:
            return current
        current = inner


def _api_headline(error: OnCallAPIError) -> str:
    match error.category:
        case ApiErrorCategory.AUTHENTICATION:
            return "The scheduling API rejected the API token."
        case ApiErrorCategory.PERMISSION:
            return "You are not allowed to change this schedule."
        case ApiErrorCategory.VALIDATION:
            return "The server rejected the shift details."
        case ApiErrorCategory.CONFLICT:
            return "The shift was changed by someone else."
        case ApiErrorCategory.NOT_FOUND:
            return "The shift could not be found."
        case ApiErrorCategory.RATE_LIMIT:
            return "The scheduling API throttled the request."
        case ApiErrorCategory.NETWORK:
            return "Network issue contacting the scheduling API."
        case _:
            return "The scheduling API request failed."


def _format_api_detail(error: OnCallAPIError) -> str:
    fields = error.field_errors()
    if fields:
        return "\n".join(f"{key}: {value}" for key, value in fields.items())
    if error.status_code:
        return f"HTTP {error.status_code}: {error}"
    return str(error)


__all__ = [
    "ErrorDescriptor",
    "ErrorSeverity",
    "describe_exception",
]
