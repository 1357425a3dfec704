"""Favorites synchronization components split by responsibility.

* :class:`ListenerRegistry` fans out per-product change notifications.
* :class:`ToggleStates` tracks the optimistic-update lifecycle per product.
* :class:`FavoritesManager` reconciles the in-memory set with the API and the
  local snapshot.
* :class:`FavoriteStatus` binds one product to one view.
"""

from .binding import FavoriteStatus
from .listeners import ListenerRegistry
from .manager import FavoritesManager
from .state import Committed, Idle, Pending, Reverted, ToggleStates

__all__ = [
    "Committed",
    "FavoriteStatus",
    "FavoritesManager",
    "Idle",
    "ListenerRegistry",
    "Pending",
    "Reverted",
    "ToggleStates",
]
