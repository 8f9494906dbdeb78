"""Credential storage for the scheduling API."""

from .secret_store import API_TOKEN_KEY, InsecureKeyringError, SecretStore

__all__ = ["API_TOKEN_KEY", "InsecureKeyringError", "SecretStore"]
