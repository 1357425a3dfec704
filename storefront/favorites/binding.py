"""Per-product view binding over :class:`FavoritesManager`."""

from __future__ import annotations

from collections.abc import Callable

from storefront.favorites.listeners import Unsubscribe
from storefront.favorites.manager import FavoritesManager
from storefront.favorites.state import ToggleState


class FavoriteStatus:
    """Track one product's favorite flag for a single view.

    ``open()`` subscribes and syncs with the manager, ``close()`` unsubscribes.
    The binding is also a context manager so views can scope it to their own
    lifetime::

        with FavoriteStatus(manager, "variant-1") as status:
            await status.toggle()
    """

    def __init__(
        self,
        manager: FavoritesManager,
        product_id: str,
        *,
        use_product_id: bool | None = None,
        on_change: Callable[[bool], None] | None = None,
    ) -> None:
        self._manager = manager
        self.product_id = product_id
        self.use_product_id = use_product_id
        self.on_change = on_change
        self.is_favorite = False
        self._unsubscribe: Unsubscribe | None = None

    @property
    def loading(self) -> bool:
        return self._manager.is_loading(self.product_id)

    @property
    def is_open(self) -> bool:
        return self._unsubscribe is not None

    def open(self) -> FavoriteStatus:
        if self._unsubscribe is None:
            self._unsubscribe = self._manager.subscribe(self.product_id, self._handle_change)
        self.is_favorite = self._manager.is_favorite(self.product_id)
        return self

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> FavoriteStatus:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def toggle(self) -> ToggleState | None:
        return await self._manager.toggle_favorite(self.product_id, self.use_product_id)

    def _handle_change(self, product_id: str, is_favorite: bool) -> None:
        self.is_favorite = is_favorite
        if self.on_change is not None:
            self.on_change(is_favorite)


__all__ = ["FavoriteStatus"]
