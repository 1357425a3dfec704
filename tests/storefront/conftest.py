"""Shared fixtures for the favorites client tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from storefront.debug import clear_debug
from storefront.favorites.manager import FavoritesManager
from storefront.storage import FavoritesSnapshot, MemoryStorage
from tests.storefront.support import FakeRemote, Recorder


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def manager(remote: FakeRemote, storage: MemoryStorage) -> FavoritesManager:
    return FavoritesManager(remote, FavoritesSnapshot(storage))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture(autouse=True)
def reset_debug_namespace() -> Iterator[None]:
    """Ensure debug exposure from one test never leaks into the next."""

    clear_debug()
    yield
    clear_debug()
