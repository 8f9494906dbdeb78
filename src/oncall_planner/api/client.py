from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from oncall_planner.api.errors import (
    ApiErrorCategory,
    AuthenticationError,
    OnCallAPIError,
    PermissionDeniedError,
    RateLimitError,
)
from oncall_planner.utils import get_logger


logger = get_logger(__name__)


TokenProvider = Callable[[], str | None]


@dataclass(slots=True)
class ApiTelemetryEvent:
    method: str
    url: str
    status_code: int | None
    duration_ms: float
    category: ApiErrorCategory | None
    success: bool


@dataclass(slots=True)
class OnCallClientConfig:
    base_url: str
    user_agent: str = "OnCallPlanner-Python"
    timeout: float = 30.0
    telemetry_callback: Callable[[ApiTelemetryEvent], None] | None = None


def _map_response_to_error(response: httpx.Response) -> OnCallAPIError:
    status = response.status_code
    retry_after = response.headers.get("Retry-After")
    body: object = None
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        body = None

    detail: dict[str, object] | None = None
    message: str | None = None
    if isinstance(body, dict):
        raw_detail = body.get("detail")
        if isinstance(raw_detail, str):
            message = raw_detail
        else:
            detail = {str(key): value for key, value in body.items()}
            message = "; ".join(
                f"{key}: {value[0] if isinstance(value, list) and value else value}"
                for key, value in detail.items()
            )

    message = message or response.text or f"API request failed with status {status}"

    if status == 401:
        return AuthenticationError(message=message)
    if status == 403:
        return PermissionDeniedError(message=message)
    if status == 429:
        return RateLimitError(message=message, retry_after=retry_after)

    category = ApiErrorCategory.UNKNOWN
    if status == 404:
        category = ApiErrorCategory.NOT_FOUND
    elif status == 409:
        category = ApiErrorCategory.CONFLICT
    elif status == 400:
        category = ApiErrorCategory.VALIDATION

    return OnCallAPIError(
        message=message,
        category=category,
        status_code=status,
        detail=detail,
        retry_after=retry_after,
    )


class OnCallClient:
    """Thin async transport for the on-call scheduling API."""

    def __init__(
        self,
        token_provider: TokenProvider,
        config: OnCallClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._config = config
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> httpx.Response:
        client = self._get_http_client()
        url = self._absolute_url(path)
        start = time.perf_counter()
        try:
            response = await client.request(method, url, params=params, json=json_body)
        except httpx.TimeoutException as exc:
            self._publish_telemetry(method, url, start, None, ApiErrorCategory.NETWORK)
            raise OnCallAPIError(
                message="Timed out communicating with the scheduling API",
                category=ApiErrorCategory.NETWORK,
                inner_error=exc,
                request_method=method.upper(),
                request_url=url,
            ) from exc
        except httpx.RequestError as exc:
            self._publish_telemetry(method, url, start, None, ApiErrorCategory.NETWORK)
            raise OnCallAPIError(
                message=f"Network error communicating with the scheduling API: {exc}",
                category=ApiErrorCategory.NETWORK,
                inner_error=exc,
                request_method=method.upper(),
                request_url=url,
            ) from exc

        if response.status_code >= 400:
            error = _map_response_to_error(response)
            error.request_method = method.upper()
            error.request_url = str(response.request.url)
            self._publish_telemetry(
                method, url, start, response.status_code, error.category
            )
            raise error

        self._publish_telemetry(method, url, start, response.status_code, None)
        return response

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        response = await self.request(
            method,
            path,
            params=params,
            json_body=json_body,
        )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ------------------------------------------------------------- Internals

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:

            def token_auth(request: httpx.Request) -> httpx.Request:
                token = self._token_provider()
                if token:
                    request.headers["Authorization"] = token
                return request

            self._http_client = httpx.AsyncClient(
                headers={
                    "User-Agent": self._config.user_agent,
                    "Accept": "application/json",
                },
                auth=token_auth,
                transport=self._transport,
                timeout=httpx.Timeout(self._config.timeout, connect=10.0),
            )
        return self._http_client

    def _absolute_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _publish_telemetry(
        self,
        method: str,
        url: str,
        start: float,
        status_code: int | None,
        category: ApiErrorCategory | None,
    ) -> None:
        event = ApiTelemetryEvent(
            method=method.upper(),
            url=url,
            status_code=status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
            category=category,
            success=category is None,
        )
        callback = self._config.telemetry_callback or self._default_telemetry_callback
        try:
            callback(event)
        except Exception:  # noqa: BLE001 - telemetry shouldn't break requests
            logger.warning("Telemetry callback raised an exception", exc_info=True)

    @staticmethod
    def _default_telemetry_callback(event: ApiTelemetryEvent) -> None:
        logger.debug(
            "API request",
            method=event.method,
            url=event.url,
            status_code=event.status_code,
            duration_ms=round(event.duration_ms, 2),
            success=event.success,
            category=event.category.value if event.category else None,
        )


__all__ = [
    "ApiTelemetryEvent",
    "OnCallClient",
    "OnCallClientConfig",
    "TokenProvider",
]
