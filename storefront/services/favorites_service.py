"""Remote favorites API client.

The :class:`FavoritesService` mirrors the four operations the storefront needs
from the backend: list the signed-in user's favorites, add one, remove one and
check the status of a single variant. Every operation requires authentication;
a missing or expired token surfaces as an :class:`ApiRequestError` with status
401, which the favorites manager treats like any other failure.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from storefront.api_client import ApiClient
from storefront.errors import ApiResponseError
from storefront.schemas.favorites import (
    FavoriteActionResponse,
    FavoriteCheckResponse,
    FavoritesResponse,
)
from storefront.settings import DEFAULT_FAVORITES_ENDPOINT

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def _parse(model: type[ResponseT], payload: Any, action: str) -> ResponseT:
    """Validate an API envelope, reporting malformed bodies as ``ApiResponseError``."""

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ApiResponseError(f"Malformed {action} response: {exc}") from exc


class FavoritesRemote(Protocol):
    """Contract the favorites manager relies on."""

    async def get_favorites(self) -> list[str]: ...

    async def add_to_favorites(
        self, product_id: str, use_product_id: bool | None = None
    ) -> None: ...

    async def remove_from_favorites(
        self, product_id: str, use_product_id: bool | None = None
    ) -> None: ...


class FavoritesService:
    """Talk to ``/user/favorites`` through an :class:`ApiClient`."""

    def __init__(
        self,
        client: ApiClient,
        *,
        endpoint: str = DEFAULT_FAVORITES_ENDPOINT,
        use_product_id: bool = False,
    ) -> None:
        self._client = client
        self._endpoint = endpoint.rstrip("/")
        self._use_product_id = use_product_id

    def _resolve_use_product_id(self, use_product_id: bool | None) -> bool:
        return self._use_product_id if use_product_id is None else use_product_id

    async def get_favorites(self) -> list[str]:
        """Return every favorited product and variant identifier."""

        payload = await self._client.get(self._endpoint, include_auth=True)
        response = _parse(FavoritesResponse, payload, "favorites")
        if not response.success:
            raise ApiResponseError(response.message or "Failed to fetch favorites")

        favorite_ids = response.favorite_ids()
        logger.debug("Fetched %d favorite identifiers", len(favorite_ids))
        return favorite_ids

    async def add_to_favorites(
        self, product_id: str, use_product_id: bool | None = None
    ) -> None:
        """Add ``product_id`` as either a product or a product variant."""

        field = (
            "product_id"
            if self._resolve_use_product_id(use_product_id)
            else "product_variant_id"
        )
        payload = await self._client.post(
            self._endpoint, {field: product_id}, include_auth=True
        )
        response = _parse(FavoriteActionResponse, payload, "add favorite")
        if not response.success:
            raise ApiResponseError(response.message or "Failed to add to favorites")

    async def remove_from_favorites(
        self, product_id: str, use_product_id: bool | None = None
    ) -> None:
        """Remove ``product_id``; the ``type`` query tells the server how to match it."""

        kind = "product" if self._resolve_use_product_id(use_product_id) else "variant"
        payload = await self._client.delete(
            f"{self._endpoint}/{product_id}",
            params={"type": kind},
            include_auth=True,
        )
        response = _parse(FavoriteActionResponse, payload, "remove favorite")
        if not response.success:
            raise ApiResponseError(response.message or "Failed to remove from favorites")

    async def check_favorite_status(self, product_variant_id: str) -> bool:
        payload = await self._client.get(
            f"{self._endpoint}/{product_variant_id}/check", include_auth=True
        )
        response = _parse(FavoriteCheckResponse, payload, "favorite check")
        if not response.success:
            raise ApiResponseError(response.message or "Failed to check favorite status")
        return response.data.is_favorited

    async def toggle_favorite(
        self,
        product_id: str,
        is_favorite: bool,
        use_product_id: bool | None = None,
    ) -> None:
        """Remove when currently favorite, otherwise add."""

        if is_favorite:
            await self.remove_from_favorites(product_id, use_product_id)
        else:
            await self.add_to_favorites(product_id, use_product_id)


__all__ = ["FavoritesRemote", "FavoritesService"]
