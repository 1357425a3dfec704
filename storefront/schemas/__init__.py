"""Pydantic schemas for API responses."""

from storefront.schemas.favorites import (  # noqa: F401
    FavoriteActionResponse,
    FavoriteCheckResponse,
    FavoriteRecord,
    FavoritesResponse,
)
