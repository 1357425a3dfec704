"""Centralized configuration management for the storefront favorites client."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer importing :mod:`storefront.settings` sees
# the same values as the CLI entry point.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_API_BASE_URL = "http://localhost:3100"
DEFAULT_FAVORITES_ENDPOINT = "/api/v1/user/favorites"
DEFAULT_STORAGE_PATH = "./data/local_storage.json"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_TOGGLE_TIMEOUT_SECONDS = 30.0
DEFAULT_LOG_LEVEL = "INFO"
STORAGE_BACKENDS = ("file", "redis", "memory")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Besides the raw environment values the class exposes a handful of derived
    helpers (the absolute favorites URL, the effective toggle timeout) so that
    the HTTP client, the storage factory and the manager never repeat parsing
    logic.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:  # noqa: D401 - short override explanation
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True

    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        alias="API_BASE_URL",
        description="Base URL of the e-commerce REST API.",
    )
    favorites_endpoint: str = Field(
        default=DEFAULT_FAVORITES_ENDPOINT,
        alias="FAVORITES_ENDPOINT",
        description="Path of the authenticated user's favorites resource.",
    )
    access_token: str | None = Field(
        default=None,
        alias="ACCESS_TOKEN",
        description=(
            "Bearer token used when local storage does not hold one. Without a"
            " token favorites requests are sent unauthenticated and fail with 401."
        ),
    )
    favorites_use_product_id: bool = Field(
        default=False,
        alias="FAVORITES_USE_PRODUCT_ID",
        description=(
            "Send identifiers as ``product_id`` instead of ``product_variant_id``"
            " when adding or removing favorites."
        ),
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        alias="REQUEST_TIMEOUT_SECONDS",
        description="Timeout applied to every HTTP request.",
    )
    toggle_timeout_seconds: float = Field(
        default=DEFAULT_TOGGLE_TIMEOUT_SECONDS,
        alias="TOGGLE_TIMEOUT_SECONDS",
        description=(
            "Upper bound for a single remote favorite mutation. Values <= 0"
            " disable the bound."
        ),
    )
    storage_backend: str = Field(
        default="file",
        alias="STORAGE_BACKEND",
        description="Local persistence backend: file, redis or memory.",
    )
    storage_path: str = Field(
        default=DEFAULT_STORAGE_PATH,
        alias="STORAGE_PATH",
        description="JSON document used by the file storage backend.",
    )
    storage_namespace: str = Field(
        default="storefront",
        alias="STORAGE_NAMESPACE",
        description="Key prefix used by the Redis storage backend.",
    )
    favorites_storage_key: str = Field(
        default="favorites",
        alias="FAVORITES_STORAGE_KEY",
        description="Storage key holding the JSON array of favorited identifiers.",
    )
    access_token_storage_key: str = Field(
        default="accessToken",
        alias="ACCESS_TOKEN_STORAGE_KEY",
        description="Storage key holding the bearer token of the signed-in user.",
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string consumed by the redis storage backend.",
    )
    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment; development enables debug exposure.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @property
    def favorites_url(self) -> str:
        """Return the absolute URL of the favorites resource."""

        return f"{self.api_base_url.rstrip('/')}/{self.favorites_endpoint.lstrip('/')}"

    @property
    def toggle_timeout(self) -> float | None:
        """Return the toggle timeout in seconds or ``None`` when disabled."""

        if self.toggle_timeout_seconds <= 0:
            return None
        return self.toggle_timeout_seconds

    @property
    def resolved_storage_backend(self) -> str:
        """Return the normalised storage backend name, rejecting unknown values."""

        backend = self.storage_backend.strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise RuntimeError(
                f"Unsupported STORAGE_BACKEND {self.storage_backend!r}; "
                f"expected one of {', '.join(STORAGE_BACKENDS)}"
            )
        return backend

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() in {"development", "dev", "local"}

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self.access_token:
            warnings.append(
                "ACCESS_TOKEN is not set - favorites requests rely on a token in "
                "local storage and fail with 401 otherwise"
            )

        if self.storage_backend.strip().lower() == "redis" and not self._explicit_redis_url:
            warnings.append(
                "REDIS_URL is not set - the redis storage backend will use "
                f"{DEFAULT_REDIS_URL}"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


# Module-level singleton mirroring the getter. Tests prefer constructing
# ``AppSettings`` directly and passing it into the context.
settings = get_settings()

__all__ = [
    "AppSettings",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_FAVORITES_ENDPOINT",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_REDIS_URL",
    "DEFAULT_STORAGE_PATH",
    "DEFAULT_TOGGLE_TIMEOUT_SECONDS",
    "STORAGE_BACKENDS",
    "get_settings",
    "settings",
]
