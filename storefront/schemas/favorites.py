"""Pydantic schemas describing the favorites API wire format."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    """Shared configuration: tolerate unknown keys and Mongo-style ``_id``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FavoriteProductRef(_ApiModel):
    """Populated ``product_id`` reference nested inside a variant."""

    id: str | None = Field(
        None,
        validation_alias=AliasChoices("_id", "id"),
        description="Product identifier.",
    )
    name: str | None = None


class FavoriteVariantRef(_ApiModel):
    """Populated ``product_variant_id`` reference of a favorite record."""

    id: str | None = Field(
        None,
        validation_alias=AliasChoices("_id", "id"),
        description="Product variant identifier.",
    )
    product_id: str | FavoriteProductRef | None = Field(
        None,
        description="Owning product, either as a raw identifier or populated.",
    )
    sku: str | None = None


class FavoriteRecord(_ApiModel):
    """One favorite row returned by ``GET /user/favorites``."""

    id: str | None = Field(None, validation_alias=AliasChoices("_id", "id"))
    user_id: str | None = None
    product_variant_id: str | FavoriteVariantRef
    created_at: datetime | None = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )

    def variant_id(self) -> str | None:
        """Return the favorited variant identifier regardless of population."""

        if isinstance(self.product_variant_id, str):
            return self.product_variant_id
        return self.product_variant_id.id

    def product_id(self) -> str | None:
        """Return the owning product identifier when the variant is populated."""

        variant = self.product_variant_id
        if isinstance(variant, str) or variant.product_id is None:
            return None
        if isinstance(variant.product_id, str):
            return variant.product_id
        return variant.product_id.id


class FavoritesResponse(_ApiModel):
    """Envelope returned by the favorites listing endpoint."""

    success: bool
    message: str | None = None
    data: list[FavoriteRecord] = Field(default_factory=list)

    def favorite_ids(self) -> list[str]:
        """Return product and variant identifiers, product ids first, deduplicated.

        Product cards may be keyed by either identifier, so both are exposed as
        favorites.
        """

        product_ids: dict[str, None] = {}
        variant_ids: dict[str, None] = {}
        for record in self.data:
            variant_id = record.variant_id()
            product_id = record.product_id()
            if variant_id:
                variant_ids[variant_id] = None
            if product_id:
                product_ids[product_id] = None
        return list(dict.fromkeys([*product_ids, *variant_ids]))


class FavoriteActionResponse(_ApiModel):
    """Envelope returned by add/remove mutations."""

    success: bool
    message: str | None = None


class FavoriteCheckData(_ApiModel):
    is_favorited: bool = False


class FavoriteCheckResponse(_ApiModel):
    """Envelope returned by ``GET /user/favorites/{id}/check``."""

    success: bool
    message: str | None = None
    data: FavoriteCheckData = Field(default_factory=FavoriteCheckData)


__all__ = [
    "FavoriteActionResponse",
    "FavoriteCheckData",
    "FavoriteCheckResponse",
    "FavoriteProductRef",
    "FavoriteRecord",
    "FavoriteVariantRef",
    "FavoritesResponse",
]
