from __future__ import annotations

import os
from typing import Callable, Final

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from oncall_planner.config.settings import APP_NAME
from oncall_planner.utils import get_logger


logger = get_logger(__name__)

API_TOKEN_KEY: Final[str] = "api_token"
_ALLOW_INSECURE_ENV: Final[str] = "ONCALL_PLANNER_ALLOW_INSECURE_KEYRING"
_INSECURE_MODULE_PREFIXES: Final[tuple[str, ...]] = (
    "keyring.backends.null",
    "keyring.backends.fail",
    "keyrings.alt.file",
)


class InsecureKeyringError(RuntimeError):
    """Raised when the active keyring backend does not provide encryption."""


def _describe_backend(backend: KeyringBackend) -> str:
    return f"{backend.__class__.__module__}.{backend.__class__.__name__}"


def _is_secure_backend(backend: KeyringBackend) -> bool:
    secure_flag = getattr(backend, "secure_storage", None)
    if isinstance(secure_flag, bool):
        return secure_flag
    module = backend.__class__.__module__
    if module.startswith("keyring.backends.chainer"):
        children = getattr(backend, "backends", ())
        return bool(children) and all(_is_secure_backend(child) for child in children)
    if module.startswith(_INSECURE_MODULE_PREFIXES):
        return False
    return "plaintext" not in backend.__class__.__name__.lower()


def _allow_insecure_setting(flag: bool | None) -> bool:
    if flag is not None:
        return flag
    env = os.getenv(_ALLOW_INSECURE_ENV)
    if env is None:
        return False
    return env.strip().lower() in {"1", "true", "yes", "on"}


class SecretStore:
    """OS keyring access for the scheduling API token."""

    def __init__(
        self,
        service_name: str = APP_NAME,
        *,
        backend: KeyringBackend | None = None,
        allow_insecure: bool | None = None,
    ) -> None:
        self._service_name = service_name
        self._backend = backend or keyring.get_keyring()
        descriptor = _describe_backend(self._backend)
        if not _is_secure_backend(self._backend):
            if not _allow_insecure_setting(allow_insecure):
                raise InsecureKeyringError(
                    f"Keyring backend {descriptor} does not provide encrypted storage. "
                    f"Set {_ALLOW_INSECURE_ENV}=1 to bypass this check."
                )
            logger.warning(
                "Proceeding with insecure keyring backend due to override",
                backend=descriptor,
            )
        logger.debug("Keyring backend initialised", backend=descriptor)

    def get_secret(self, key: str) -> str | None:
        return self._backend.get_password(self._service_name, key)

    def set_secret(self, key: str, value: str) -> None:
        self._backend.set_password(self._service_name, key, value)

    def delete_secret(self, key: str) -> None:
        try:
            self._backend.delete_password(self._service_name, key)
        except PasswordDeleteError:
            logger.debug("Secret already absent", key=key)

    def api_token(self) -> str | None:
        return self.get_secret(API_TOKEN_KEY)

    def set_api_token(self, token: str | None) -> None:
        if token:
            self.set_secret(API_TOKEN_KEY, token)
        else:
            self.delete_secret(API_TOKEN_KEY)

    def token_provider(self) -> Callable[[], str | None]:
        """Callable handed to the API client; reads the token on every request."""
        return self.api_token


__all__ = ["API_TOKEN_KEY", "InsecureKeyringError", "SecretStore"]
