from __future__ import annotations

import asyncio

import httpx

from oncall_planner.api import ApiErrorCategory, AuthenticationError, OnCallAPIError
from oncall_planner.utils.errors import ErrorSeverity, describe_exception


def test_validation_error_lists_field_messages() -> None:
    error = OnCallAPIError(
        message="rolling_users: This field is required.",
        category=ApiErrorCategory.VALIDATION,
        status_code=400,
        detail={"rolling_users": ["This field is required."]},
    )

    descriptor = describe_exception(error)

    assert descriptor.headline == "The server rejected the shift details."
    assert descriptor.detail == "rolling_users: This field is required."
    assert descriptor.severity is ErrorSeverity.ERROR
    assert descriptor.transient is False


def test_wrapped_api_error_is_found_through_cause() -> None:
    try:
        try:
            raise AuthenticationError("Invalid token.")
        except OnCallAPIError as exc:
            raise RuntimeError("submit failed") from exc
    except RuntimeError as wrapped:
        descriptor = describe_exception(wrapped)

    assert descriptor.headline == "The scheduling API rejected the API token."
    assert descriptor.suggestion == "Update the API token in settings and try again."


def test_network_api_error_is_transient_warning() -> None:
    error = OnCallAPIError(message="refused", category=ApiErrorCategory.NETWORK)

    descriptor = describe_exception(error)

    assert descriptor.transient is True
    assert descriptor.severity is ErrorSeverity.WARNING


def test_bare_httpx_timeout() -> None:
    descriptor = describe_exception(httpx.ReadTimeout("slow"))

    assert descriptor.headline == "Timed out contacting the scheduling API."
    assert descriptor.transient is True


def test_asyncio_timeout() -> None:
    descriptor = describe_exception(asyncio.TimeoutError())

    assert descriptor.severity is ErrorSeverity.WARNING


def test_unknown_error_falls_back_to_type_and_message() -> None:
    descriptor = describe_exception(ValueError("bad shift"))

    assert descriptor.headline == "Operation failed."
    assert descriptor.detail == "ValueError: bad shift"
