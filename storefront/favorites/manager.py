"""Favorites manager: single source of truth for "is product X favorited".

The manager owns an in-memory set of favorited identifiers and reconciles it
between the remote favorites API and a local persistent snapshot. UI bindings
subscribe to individual identifiers so that a change to one product only
reaches the subscribers of that product.

Lifecycle
---------
* :meth:`FavoritesManager.initialize` hydrates from the local snapshot, then
  replaces the set with the server's answer when the fetch succeeds. It never
  raises; concurrent callers share one in-flight initialization.
* :meth:`FavoritesManager.toggle_favorite` flips membership optimistically,
  notifies subscribers, calls the API and reverts (notifying again) when the
  call fails. At most one toggle per identifier is in flight.
* :meth:`FavoritesManager.force_reinitialize` discards the set and runs a
  fresh initialization, e.g. after the signed-in identity changes.

Everything runs on one event loop, so membership checks and state transitions
between ``await`` points are atomic without locks.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from storefront.errors import FavoriteToggleTimeout
from storefront.favorites.listeners import Listener, ListenerRegistry, Unsubscribe
from storefront.favorites.state import Committed, Reverted, ToggleState, ToggleStates
from storefront.services.favorites_service import FavoritesRemote
from storefront.storage import FavoritesSnapshot

logger = logging.getLogger(__name__)


class FavoritesManager:
    """Coordinate the favorites set, its persistence and its subscribers."""

    def __init__(
        self,
        remote: FavoritesRemote,
        snapshot: FavoritesSnapshot,
        *,
        toggle_timeout: float | None = None,
    ) -> None:
        self._remote = remote
        self._snapshot = snapshot
        self._toggle_timeout = toggle_timeout
        self._favorites: set[str] = set()
        self._listeners = ListenerRegistry()
        self._toggles = ToggleStates()
        self._initialized = False
        self._initialization: asyncio.Task[None] | None = None
        # Bumped by force_reinitialize so a superseded initialization cannot
        # overwrite the state of the one that replaced it.
        self._generation = 0

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    @property
    def toggle_states(self) -> ToggleStates:
        return self._toggles

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------
    async def initialize(self) -> None:
        """Load favorites once; later and concurrent calls await the same run.

        A caller whose run is superseded by :meth:`force_reinitialize` keeps
        waiting on the replacement, so this only returns once initialized.
        """

        if self._initialized:
            logger.debug("Favorites manager already initialized")
            return

        while not self._initialized:
            task = self._initialization
            if task is None:
                task = self._initialization = asyncio.ensure_future(
                    self._do_initialize(self._generation)
                )
            else:
                logger.debug("Waiting for existing favorites initialization to complete")

            # A cancelled caller must not cancel the initialization other callers share.
            await asyncio.shield(task)
            if task is self._initialization:
                break

    async def force_reinitialize(
        self, prepare: Callable[[], Awaitable[None]] | None = None
    ) -> None:
        """Drop in-memory favorites and initialize again from scratch.

        The reload waits for any initialization still running, so a stale run
        finishes its snapshot write first. ``prepare`` then runs before the new
        initialization, e.g. to swap the stored token or drop the snapshot.
        """

        logger.info("Force re-initializing favorites manager")
        self._generation += 1
        self._initialized = False
        self._favorites = set()
        self._initialization = asyncio.ensure_future(
            self._reload(self._initialization, prepare, self._generation)
        )
        await self.initialize()

    async def _reload(
        self,
        previous: asyncio.Task[None] | None,
        prepare: Callable[[], Awaitable[None]] | None,
        generation: int,
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        if prepare is not None:
            try:
                await prepare()
            except Exception:
                # Let the next initialize() start a fresh run.
                if generation == self._generation:
                    self._initialization = None
                raise
        await self._do_initialize(generation)

    async def _do_initialize(self, generation: int) -> None:
        logger.debug("Starting favorites manager initialization")

        local_favorites = await self._snapshot.load() or set()
        if generation != self._generation:
            return
        self._favorites = set(local_favorites)

        try:
            remote_favorites = await self._remote.get_favorites()
        except Exception as exc:  # type: ignore[broad-except]
            if generation != self._generation:
                return
            logger.warning(
                "Failed to initialize favorites from API, using local storage "
                "fallback (%d items): %s",
                len(local_favorites),
                exc,
            )
            self._favorites = set(local_favorites)
        else:
            if generation != self._generation:
                return
            self._favorites = set(remote_favorites)
            logger.info(
                "Favorites initialized from API with %d items", len(self._favorites)
            )
            await self._snapshot.save(self._favorites)
            if generation != self._generation:
                return

        self._initialized = True
        # Subscribers that read before initialization saw False; resync them.
        for product_id in self._listeners:
            self._listeners.notify(product_id, product_id in self._favorites)

    # ------------------------------------------------------------------
    # Queries and subscriptions
    # ------------------------------------------------------------------
    def is_favorite(self, product_id: str) -> bool:
        if not self._initialized:
            return False
        return product_id in self._favorites

    def is_loading(self, product_id: str) -> bool:
        return self._toggles.is_pending(product_id)

    def subscribe(self, product_id: str, listener: Listener) -> Unsubscribe:
        return self._listeners.subscribe(product_id, listener)

    def get_all_favorites(self) -> list[str]:
        return sorted(self._favorites)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def toggle_favorite(
        self, product_id: str, use_product_id: bool | None = None
    ) -> ToggleState | None:
        """Flip ``product_id`` optimistically and confirm with the API.

        Returns the terminal :class:`Committed` state, or ``None`` when a toggle
        for the same identifier is already in flight. On failure the flip is
        reverted, subscribers are told, and the error is re-raised.
        """

        if self._toggles.is_pending(product_id):
            logger.debug("Already processing favorite toggle for %s", product_id)
            return None

        was_favorite = product_id in self._favorites
        self._toggles.begin(product_id, was_favorite)
        try:
            logger.debug(
                "Toggling favorite %s: %s -> %s", product_id, was_favorite, not was_favorite
            )
            self._set_membership(product_id, not was_favorite)
            self._listeners.notify(product_id, not was_favorite)

            try:
                await self._call_remote(product_id, was_favorite, use_product_id)
            except (Exception, asyncio.CancelledError) as exc:
                self._set_membership(product_id, was_favorite)
                reverted: Reverted = self._toggles.revert(product_id)
                self._listeners.notify(product_id, reverted.value)
                await self._snapshot.save(self._favorites)
                logger.warning(
                    "Failed to toggle favorite %s, reverted to %s: %s",
                    product_id,
                    reverted.value,
                    exc,
                )
                raise

            committed: Committed = self._toggles.commit(product_id)
            await self._snapshot.save(self._favorites)
            logger.info(
                "%s favorite %s", "Added" if committed.value else "Removed", product_id
            )
            return committed
        finally:
            self._toggles.release(product_id)

    async def _call_remote(
        self, product_id: str, was_favorite: bool, use_product_id: bool | None
    ) -> None:
        if was_favorite:
            call = self._remote.remove_from_favorites(product_id, use_product_id)
        else:
            call = self._remote.add_to_favorites(product_id, use_product_id)

        if self._toggle_timeout is None:
            await call
            return
        try:
            await asyncio.wait_for(call, timeout=self._toggle_timeout)
        except asyncio.TimeoutError as exc:
            raise FavoriteToggleTimeout(product_id, self._toggle_timeout) from exc

    def _set_membership(self, product_id: str, is_favorite: bool) -> None:
        if is_favorite:
            self._favorites.add(product_id)
        else:
            self._favorites.discard(product_id)

    # ------------------------------------------------------------------
    # Debug helpers
    # ------------------------------------------------------------------
    def set_favorites(self, favorite_ids: list[str] | set[str]) -> None:
        """Replace the in-memory set without notifying or persisting."""

        self._favorites = set(favorite_ids)
        logger.debug("Manually set favorites to %s", sorted(self._favorites))

    def add_to_local_set(self, product_id: str) -> None:
        self._favorites.add(product_id)
        self._listeners.notify(product_id, True)

    def remove_from_local_set(self, product_id: str) -> None:
        self._favorites.discard(product_id)
        self._listeners.notify(product_id, False)


__all__ = ["FavoritesManager"]
