"""Unit tests covering the typed client settings."""

from __future__ import annotations

import logging

import pytest

from storefront.app import validate_environment
from storefront.settings import DEFAULT_REDIS_URL, AppSettings


def test_favorites_url_joins_base_and_endpoint() -> None:
    configured = AppSettings(
        api_base_url="https://shop.example.com/",
        favorites_endpoint="/api/v1/user/favorites",
    )

    assert configured.favorites_url == "https://shop.example.com/api/v1/user/favorites"


def test_environment_aliases_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("FAVORITES_USE_PRODUCT_ID", "true")
    monkeypatch.setenv("TOGGLE_TIMEOUT_SECONDS", "5")

    configured = AppSettings()

    assert configured.api_base_url == "https://api.example.com"
    assert configured.favorites_use_product_id is True
    assert configured.toggle_timeout == 5.0


@pytest.mark.parametrize("value", [0, -1])
def test_non_positive_toggle_timeout_disables_the_bound(value: float) -> None:
    assert AppSettings(toggle_timeout_seconds=value).toggle_timeout is None


def test_storage_backend_is_normalised_and_validated() -> None:
    assert AppSettings(storage_backend=" Redis ").resolved_storage_backend == "redis"

    with pytest.raises(RuntimeError, match="Unsupported STORAGE_BACKEND"):
        _ = AppSettings(storage_backend="sqlite").resolved_storage_backend


def test_log_level_numeric_falls_back_to_info() -> None:
    assert AppSettings(log_level="debug").log_level_numeric == logging.DEBUG
    assert AppSettings(log_level="chatty").log_level_numeric == logging.INFO


def test_optional_config_warnings_default(monkeypatch: pytest.MonkeyPatch) -> None:
    """A redis backend without REDIS_URL or ACCESS_TOKEN warns about both."""

    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("ACCESS_TOKEN", raising=False)
    configured = AppSettings(storage_backend="redis")

    warnings = configured.optional_config_warnings()

    assert any("ACCESS_TOKEN" in warning for warning in warnings)
    assert any("REDIS_URL" in warning for warning in warnings)


def test_optional_config_warnings_clear_when_values_provided(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("REDIS_URL", DEFAULT_REDIS_URL)
    monkeypatch.setenv("ACCESS_TOKEN", "token")
    configured = AppSettings(storage_backend="redis")

    assert configured.optional_config_warnings() == []


def test_file_backend_does_not_warn_about_redis(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REDIS_URL", raising=False)
    configured = AppSettings(storage_backend="file", access_token="token")

    assert configured.optional_config_warnings() == []


def test_validate_environment_logging(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.delenv("ACCESS_TOKEN", raising=False)
    candidate = AppSettings(storage_backend="memory")

    with caplog.at_level(logging.WARNING):
        validate_environment(candidate)

    assert "Environment Configuration Warnings" in caplog.text
    assert "ACCESS_TOKEN is not set" in caplog.text
