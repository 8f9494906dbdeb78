from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ApiErrorCategory(str, Enum):
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class OnCallAPIError(Exception):
    message: str
    category: ApiErrorCategory = ApiErrorCategory.UNKNOWN
    status_code: int | None = None
    detail: dict[str, object] | None = None
    retry_after: str | None = None
    inner_error: Exception | None = None
    request_method: str | None = None
    request_url: str | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    @property
    def recovery_suggestion(self) -> str | None:
        if self.category is ApiErrorCategory.AUTHENTICATION:
            return "Update the API token in settings and try again."
        if self.category is ApiErrorCategory.PERMISSION:
            return "Ask an administrator for permission to edit this schedule."
        if self.category is ApiErrorCategory.VALIDATION:
            return "Review the selected users and the start/end times."
        if self.category is ApiErrorCategory.CONFLICT:
            return "The shift changed on the server. Reopen the form and retry."
        if self.category is ApiErrorCategory.NOT_FOUND:
            return "The shift no longer exists. Refresh the schedule."
        if self.category is ApiErrorCategory.RATE_LIMIT:
            if self.retry_after:
                return f"Too many requests. Retry after {self.retry_after} seconds."
            return "Too many requests. Wait a moment and retry."
        if self.category is ApiErrorCategory.NETWORK:
            return "Check your network connection and try again."
        return None

    @property
    def is_retriable(self) -> bool:
        if self.category in {ApiErrorCategory.RATE_LIMIT, ApiErrorCategory.NETWORK}:
            return True
        if self.status_code and 500 <= self.status_code <= 599:
            return True
        return False

    def field_errors(self) -> dict[str, str]:
        """Flatten a validation payload (``{"field": ["msg", ...]}``) to strings."""
        if not self.detail:
            return {}
        flattened: dict[str, str] = {}
        for key, value in self.detail.items():
            if isinstance(value, list):
                flattened[key] = "; ".join(str(item) for item in value)
            else:
                flattened[key] = str(value)
        return flattened


class AuthenticationError(OnCallAPIError):
    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(
            message=message,
            category=ApiErrorCategory.AUTHENTICATION,
            status_code=401,
        )


class PermissionDeniedError(OnCallAPIError):
    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(
            message=message,
            category=ApiErrorCategory.PERMISSION,
            status_code=403,
        )


class RateLimitError(OnCallAPIError):
    def __init__(
        self, message: str = "Rate limited", retry_after: str | None = None
    ) -> None:
        super().__init__(
            message=message,
            category=ApiErrorCategory.RATE_LIMIT,
            status_code=429,
            retry_after=retry_after,
        )


__all__ = [
    "ApiErrorCategory",
    "OnCallAPIError",
    "AuthenticationError",
    "PermissionDeniedError",
    "RateLimitError",
]
