from __future__ import annotations

from oncall_planner.api import OnCallClient, OnCallClientConfig
from oncall_planner.auth import SecretStore
from oncall_planner.config import Settings
from oncall_planner.services import MemberService, RotationService, ServiceRegistry
from oncall_planner.utils import get_logger


logger = get_logger(__name__)


def build_client(settings: Settings, secret_store: SecretStore) -> OnCallClient:
    config = OnCallClientConfig(
        base_url=settings.api_url,
        user_agent=settings.user_agent,
        timeout=settings.request_timeout,
    )
    return OnCallClient(secret_store.token_provider(), config)


def build_services(settings: Settings, secret_store: SecretStore) -> ServiceRegistry:
    """Initialise the API client and the services the rotation form needs."""

    if not settings.is_configured:
        logger.warning("API endpoint not configured; services unavailable")
        return ServiceRegistry()
    if secret_store.api_token() is None:
        logger.warning("No API token stored; requests will be rejected")
    client = build_client(settings, secret_store)
    registry = ServiceRegistry(
        rotations=RotationService(client),
        members=MemberService(client),
    )
    logger.debug("Service registry initialised", api_url=settings.api_url)
    return registry


__all__ = ["build_client", "build_services"]
