"""Utilities for loading sensitive configuration without leaking values."""
from __future__ import annotations

import os
from typing import Final

__all__ = ["MissingSecretError", "require_secret", "is_placeholder"]


class MissingSecretError(RuntimeError):
    """Raised when a required secret is not configured."""


_PLACEHOLDER_VALUES: Final[set[str]] = {
    "changeme",
    "change-me",
    "placeholder",
    "example",
    "sample",
    "your-key-here",
    "your-client-secret",
}


def is_placeholder(value: str | None) -> bool:
    if not value:
        return True
    normalized = value.strip().lower()
    return not normalized or normalized in _PLACEHOLDER_VALUES


def require_secret(name: str, value: str | None = None) -> str:
    """Return a trimmed secret value or raise :class:`MissingSecretError`.

    ``value`` lets callers pass a setting that was already resolved; when it is
    omitted the environment variable ``name`` is read.
    """

    if value is None:
        value = os.getenv(name)
    if is_placeholder(value):
        raise MissingSecretError(f"{name} is required and must not use placeholder defaults")
    return value.strip()
