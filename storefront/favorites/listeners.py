"""Per-identifier publish/subscribe registry for favorite changes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)

Listener = Callable[[str, bool], None]
Unsubscribe = Callable[[], None]


class ListenerRegistry:
    """Map a product identifier to the callbacks interested in it.

    Listeners for one identifier form an insertion-ordered set: registering the
    same callable twice keeps a single registration, and notifications are
    delivered in the order listeners first subscribed. An identifier whose last
    listener unsubscribes is dropped from the registry. An unsubscribe handle
    only removes the registration it was returned for, so a handle kept from
    before a re-registration is a no-op.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, dict[Listener, object]] = {}

    def subscribe(self, product_id: str, listener: Listener) -> Unsubscribe:
        product_listeners = self._listeners.setdefault(product_id, {})
        token = product_listeners.setdefault(listener, object())

        def unsubscribe() -> None:
            product_listeners = self._listeners.get(product_id)
            if product_listeners is None:
                return
            if product_listeners.get(listener) is not token:
                return
            del product_listeners[listener]
            if not product_listeners:
                del self._listeners[product_id]

        return unsubscribe

    def notify(self, product_id: str, is_favorite: bool) -> None:
        product_listeners = self._listeners.get(product_id)
        if not product_listeners:
            return
        # Listeners may unsubscribe while being notified.
        for listener in list(product_listeners):
            try:
                listener(product_id, is_favorite)
            except Exception:  # type: ignore[broad-except]
                logger.exception("Error in favorite listener for %s", product_id)

    def subscribed_ids(self) -> list[str]:
        return list(self._listeners)

    def listener_count(self, product_id: str) -> int:
        return len(self._listeners.get(product_id, ()))

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._listeners

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._listeners))

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ["Listener", "ListenerRegistry", "Unsubscribe"]
