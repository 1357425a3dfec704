"""Test doubles shared by the favorites client test modules."""

from __future__ import annotations

import asyncio
import json

from storefront.storage import MemoryStorage


class FakeRemote:
    """In-memory double that mimics :class:`FavoritesService`.

    ``mutation_gate`` holds add/remove calls until it is set, and
    ``fetch_gate`` holds the next ``get_favorites`` call once. The list returned
    by a fetch is captured before the gate is awaited.
    """

    def __init__(self, favorites: list[str] | None = None) -> None:
        self.favorites: list[str] = list(favorites or [])
        self.fetch_error: Exception | None = None
        self.mutation_error: Exception | None = None
        self.mutation_gate: asyncio.Event | None = None
        self.fetch_gate: asyncio.Event | None = None
        self.calls: list[tuple[str, str | None, bool | None]] = []

    @property
    def mutations(self) -> list[tuple[str, str | None, bool | None]]:
        return [call for call in self.calls if call[0] in {"add", "remove"}]

    @property
    def fetch_count(self) -> int:
        return sum(1 for call in self.calls if call[0] == "get")

    async def get_favorites(self) -> list[str]:
        self.calls.append(("get", None, None))
        result = list(self.favorites)
        if self.fetch_gate is not None:
            gate, self.fetch_gate = self.fetch_gate, None
            await gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error
        return result

    async def add_to_favorites(
        self, product_id: str, use_product_id: bool | None = None
    ) -> None:
        self.calls.append(("add", product_id, use_product_id))
        if self.mutation_gate is not None:
            await self.mutation_gate.wait()
        if self.mutation_error is not None:
            raise self.mutation_error
        if product_id not in self.favorites:
            self.favorites.append(product_id)

    async def remove_from_favorites(
        self, product_id: str, use_product_id: bool | None = None
    ) -> None:
        self.calls.append(("remove", product_id, use_product_id))
        if self.mutation_gate is not None:
            await self.mutation_gate.wait()
        if self.mutation_error is not None:
            raise self.mutation_error
        if product_id in self.favorites:
            self.favorites.remove(product_id)


class Recorder:
    """Listener double collecting ``(product_id, is_favorite)`` notifications."""

    def __init__(self) -> None:
        self.events: list[tuple[str, bool]] = []

    def __call__(self, product_id: str, is_favorite: bool) -> None:
        self.events.append((product_id, is_favorite))


def stored_favorites(storage: MemoryStorage, key: str = "favorites") -> list[str] | None:
    """Decode the snapshot held by ``storage`` synchronously for assertions."""

    raw = storage._items.get(key)
    return None if raw is None else json.loads(raw)




class GatedStorage(MemoryStorage):
    """Memory storage whose next ``set_item`` waits on ``write_gate`` once."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.write_gate: asyncio.Event | None = None
        self.held_writes = 0

    async def set_item(self, key: str, value: str) -> None:
        if self.write_gate is not None:
            gate, self.write_gate = self.write_gate, None
            self.held_writes += 1
            await gate.wait()
        await super().set_item(key, value)
