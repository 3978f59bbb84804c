"""Unit tests for connection string masking and secret loading."""
from __future__ import annotations

import pytest

from feature_toggle.security import (
    MissingSecretError,
    endpoint_from_connection_string,
    is_masked,
    mask_connection_string,
    require_secret,
)


def test_secret_segment_is_masked_and_others_kept() -> None:
    value = "Endpoint=https://appcs.azconfig.io;Id=abc123;Secret=c2VjcmV0PT0="
    assert mask_connection_string(value) == "Endpoint=https://appcs.azconfig.io;Id=abc123;Secret=***"


def test_any_key_named_segment_is_masked() -> None:
    assert mask_connection_string("AccountKey=abc==;SharedAccessKeyName=root") == "AccountKey=***;SharedAccessKeyName=***"


def test_values_mentioning_secret_are_not_masked() -> None:
    value = "Endpoint=https://secret-store.azconfig.io;Id=key-1"
    assert mask_connection_string(value) == value


def test_empty_connection_string_masks_to_empty() -> None:
    assert mask_connection_string(None) == ""
    assert mask_connection_string("") == ""


def test_masked_values_are_detected() -> None:
    assert is_masked("Endpoint=x;Secret=***")
    assert not is_masked("Endpoint=x;Secret=abc")
    assert not is_masked(None)


def test_endpoint_is_read_from_connection_string() -> None:
    assert endpoint_from_connection_string("Id=1;endpoint=https://a.azconfig.io ;Secret=x") == "https://a.azconfig.io"
    assert endpoint_from_connection_string("Id=1;Secret=x") is None


def test_require_secret_rejects_placeholders(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FEATURE_TOGGLE_TEST_SECRET", "changeme")
    with pytest.raises(MissingSecretError):
        require_secret("FEATURE_TOGGLE_TEST_SECRET")

    monkeypatch.setenv("FEATURE_TOGGLE_TEST_SECRET", "  real-value ")
    assert require_secret("FEATURE_TOGGLE_TEST_SECRET") == "real-value"
    assert require_secret("UNUSED", "explicit") == "explicit"
    with pytest.raises(MissingSecretError):
        require_secret("UNUSED", "")
