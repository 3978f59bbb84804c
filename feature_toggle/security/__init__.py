"""Helpers for handling credentials and secrets."""
from .connection_strings import endpoint_from_connection_string, is_masked, mask_connection_string
from .secrets import MissingSecretError, is_placeholder, require_secret

__all__ = [
    "MissingSecretError",
    "endpoint_from_connection_string",
    "is_masked",
    "is_placeholder",
    "mask_connection_string",
    "require_secret",
]
