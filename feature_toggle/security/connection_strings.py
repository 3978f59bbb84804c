"""Parsing and masking of App Configuration connection strings.

Connection strings look like ``Endpoint=https://x.azconfig.io;Id=abc;Secret=s3cr3t=``.
Segment values may themselves contain ``=`` (base64 secrets), so only the first
``=`` separates a segment name from its value.
"""
from __future__ import annotations

_MASK = "***"
_SENSITIVE_MARKERS = ("secret", "key")


def _split_segment(segment: str) -> tuple[str, str | None]:
    name, sep, value = segment.partition("=")
    return name, (value if sep else None)


def mask_connection_string(connection_string: str | None) -> str:
    """Replace the value of every secret-bearing segment with ``***``."""

    if not connection_string:
        return ""

    masked: list[str] = []
    for segment in connection_string.split(";"):
        name, value = _split_segment(segment)
        lowered = name.strip().lower()
        if value is not None and any(marker in lowered for marker in _SENSITIVE_MARKERS):
            masked.append(f"{name}={_MASK}")
        else:
            masked.append(segment)
    return ";".join(masked)


def is_masked(connection_string: str | None) -> bool:
    return bool(connection_string) and _MASK in connection_string


def endpoint_from_connection_string(connection_string: str | None) -> str | None:
    """Return the ``Endpoint=`` segment value, if any."""

    if not connection_string:
        return None
    for segment in connection_string.split(";"):
        name, value = _split_segment(segment)
        if name.strip().lower() == "endpoint" and value:
            return value.strip()
    return None


__all__ = ["mask_connection_string", "is_masked", "endpoint_from_connection_string"]
