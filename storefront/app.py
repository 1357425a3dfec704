"""Application context wiring settings, storage, API client and manager.

A :class:`StorefrontContext` is constructed once per running process and passed
to whatever owns the per-product bindings, instead of relying on a module-level
manager singleton. It also carries the authentication integration: favorites
are scoped to the signed-in identity, so :meth:`StorefrontContext.login` and
:meth:`StorefrontContext.logout` re-initialize the manager.
"""

from __future__ import annotations

import logging

import httpx

from storefront.api_client import ApiClient
from storefront.debug import clear_debug, expose_debug
from storefront.favorites.manager import FavoritesManager
from storefront.services.favorites_service import FavoritesRemote, FavoritesService
from storefront.settings import AppSettings, get_settings
from storefront.storage import (
    FavoritesSnapshot,
    KeyValueStorage,
    build_storage,
    close_redis,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(active_settings: AppSettings | None = None) -> None:
    """Configure root logging from ``LOG_LEVEL``."""

    configured = active_settings or get_settings()
    logging.basicConfig(level=configured.log_level_numeric, format=LOG_FORMAT)


def validate_environment(active_settings: AppSettings | None = None) -> None:
    """Log warnings for unset optional configuration."""

    configured = active_settings or get_settings()
    warnings = configured.optional_config_warnings()
    if not warnings:
        return

    logger.warning("=" * 60)
    logger.warning("Environment Configuration Warnings:")
    for warning in warnings:
        logger.warning(f"  • {warning}")
    logger.warning("=" * 60)


class StorefrontContext:
    """Own every long-lived collaborator of the favorites client."""

    def __init__(
        self,
        *,
        settings: AppSettings,
        storage: KeyValueStorage,
        api_client: ApiClient | None = None,
        remote: FavoritesRemote | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.storage = storage
        self.api_client = api_client or ApiClient(
            settings.api_base_url,
            token_provider=self.get_access_token,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )
        self.favorites_service = FavoritesService(
            self.api_client,
            endpoint=settings.favorites_endpoint,
            use_product_id=settings.favorites_use_product_id,
        )
        self.favorites = FavoritesManager(
            remote or self.favorites_service,
            FavoritesSnapshot(storage, settings.favorites_storage_key),
            toggle_timeout=settings.toggle_timeout,
        )

    @classmethod
    async def create(
        cls,
        active_settings: AppSettings | None = None,
        *,
        storage: KeyValueStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> StorefrontContext:
        """Build a context from settings, selecting the configured storage backend."""

        configured = active_settings or get_settings()
        resolved_storage = storage or await build_storage(configured)
        return cls(settings=configured, storage=resolved_storage, transport=transport)

    async def __aenter__(self) -> StorefrontContext:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def start(self) -> None:
        """Expose debug helpers in development and initialize favorites."""

        expose_debug(
            self.favorites,
            self.favorites.force_reinitialize,
            enabled=self.settings.is_development,
        )
        await self.favorites.initialize()

    async def aclose(self) -> None:
        await self.api_client.aclose()
        if self.settings.resolved_storage_backend == "redis":
            await close_redis()
        if self.settings.is_development:
            clear_debug()

    async def get_access_token(self) -> str | None:
        """Return the stored bearer token, falling back to ``ACCESS_TOKEN``."""

        token = await self.storage.get_item(self.settings.access_token_storage_key)
        return token or self.settings.access_token

    async def login(self, access_token: str) -> None:
        """Store ``access_token`` and reload favorites for the new identity."""

        async def store_token() -> None:
            await self.storage.set_item(self.settings.access_token_storage_key, access_token)
            logger.info("Access token stored; refreshing favorites for the new identity")

        await self.favorites.force_reinitialize(store_token)

    async def logout(self) -> None:
        """Forget the token and the snapshot, then reload favorites.

        Both keys are removed only after any initialization still running for
        the previous identity has written its snapshot.
        """

        async def forget_identity() -> None:
            await self.storage.remove_item(self.settings.access_token_storage_key)
            await self.storage.remove_item(self.settings.favorites_storage_key)
            logger.info("Access token cleared; refreshing favorites")

        await self.favorites.force_reinitialize(forget_identity)


__all__ = [
    "LOG_FORMAT",
    "StorefrontContext",
    "configure_logging",
    "validate_environment",
]
