"""Development-only inspection hooks for the favorites manager.

When the application runs in development, :func:`expose_debug` publishes a few
callables into :data:`DEBUG_NAMESPACE` so a REPL or debugger session can poke
at the live manager::

    >>> from storefront.debug import DEBUG_NAMESPACE
    >>> DEBUG_NAMESPACE["check"]("variant-1")
    True

Nothing here is part of the public contract.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from storefront.favorites.manager import FavoritesManager

logger = logging.getLogger(__name__)

DEBUG_NAMESPACE: dict[str, Any] = {}


def expose_debug(
    manager: FavoritesManager,
    refresh: Callable[[], Awaitable[None]] | None = None,
    *,
    enabled: bool = True,
) -> bool:
    """Register ``manager`` helpers in :data:`DEBUG_NAMESPACE` when ``enabled``."""

    if not enabled:
        return False

    refresh_callable = refresh or manager.force_reinitialize
    DEBUG_NAMESPACE.update(
        manager=manager,
        refresh=refresh_callable,
        refresh_favorites=refresh_callable,
        check=manager.is_favorite,
        list=manager.get_all_favorites,
    )
    logger.debug("Favorites debug helpers exposed")
    return True


def clear_debug() -> None:
    DEBUG_NAMESPACE.clear()


__all__ = ["DEBUG_NAMESPACE", "clear_debug", "expose_debug"]
