"""HTTP access to the on-call scheduling API."""

from .client import ApiTelemetryEvent, OnCallClient, OnCallClientConfig, TokenProvider
from .errors import (
    ApiErrorCategory,
    AuthenticationError,
    OnCallAPIError,
    PermissionDeniedError,
    RateLimitError,
)

__all__ = [
    "ApiTelemetryEvent",
    "OnCallClient",
    "OnCallClientConfig",
    "TokenProvider",
    "ApiErrorCategory",
    "AuthenticationError",
    "OnCallAPIError",
    "PermissionDeniedError",
    "RateLimitError",
]
