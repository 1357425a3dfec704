"""Local persistent key-value storage used as the offline favorites cache.

The storage API deliberately mirrors the browser ``localStorage`` surface
(``get_item``/``set_item``/``remove_item``/``clear`` over string values) but is
asynchronous so that network-backed implementations such as Redis fit behind
the same interface. Three backends are provided:

* :class:`MemoryStorage` keeps values in a process-local dictionary.
* :class:`JsonFileStorage` persists a single JSON object on disk and survives
  process restarts.
* :class:`RedisStorage` stores namespaced keys in Redis.

:class:`FavoritesSnapshot` layers the favorites-specific encoding (a JSON array
of identifiers) on top of any backend.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

from filelock import FileLock
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from storefront.errors import StorageError
from storefront.settings import AppSettings

logger = logging.getLogger(__name__)

_redis_client: Redis | None = None
_client_lock = asyncio.Lock()


class KeyValueStorage(Protocol):
    """Asynchronous ``localStorage``-like interface."""

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...

    async def clear(self) -> None: ...


class MemoryStorage:
    """Dictionary-backed storage scoped to the current process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    async def clear(self) -> None:
        self._items.clear()


class JsonFileStorage:
    """Persist every key in one JSON object on disk.

    Reads and writes happen in a worker thread so the event loop never blocks on
    disk I/O. A sibling ``.lock`` file serialises writers across processes, and
    each write lands in a temporary file that atomically replaces the document,
    so a crash mid-write never leaves a truncated file behind.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = FileLock(f"{self._path}.lock")

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as handle:
                document = json.load(handle)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Storage file {self._path} is not valid JSON") from exc
        except OSError as exc:
            raise StorageError(f"Unable to read storage file {self._path}: {exc}") from exc
        if not isinstance(document, dict):
            raise StorageError(f"Storage file {self._path} does not hold a JSON object")
        return {str(key): str(value) for key, value in document.items()}

    def _write_document(self, document: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            raise StorageError(f"Unable to write storage file {self._path}: {exc}") from exc

    def _mutate(self, key: str | None, value: str | None) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if key is None:
                self._write_document({})
                return
            try:
                document = self._read_document()
            except StorageError as exc:
                logger.warning("Discarding unreadable storage file: %s", exc)
                document = {}
            if value is None:
                if key not in document:
                    return
                document.pop(key)
            else:
                document[key] = value
            self._write_document(document)

    async def get_item(self, key: str) -> str | None:
        document = await asyncio.to_thread(self._read_document)
        return document.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._mutate, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._mutate, key, None)

    async def clear(self) -> None:
        await asyncio.to_thread(self._mutate, None, None)


def _is_redis_connection_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` represents a Redis availability failure."""

    return isinstance(exc, (RedisConnectionError, RedisTimeoutError))


class RedisStorage:
    """Namespaced storage backed by Redis.

    Connection failures are converted into :class:`StorageError` so callers can
    treat them like any other local storage outage; other exceptions propagate.
    """

    def __init__(self, client: Redis, *, namespace: str = "storefront") -> None:
        self._client = client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get_item(self, key: str) -> str | None:
        try:
            value = await self._client.get(self._key(key))
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                raise StorageError(f"Redis get failed for key {key}: {exc}") from exc
            raise
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    async def set_item(self, key: str, value: str) -> None:
        try:
            await self._client.set(self._key(key), value)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                raise StorageError(f"Redis set failed for key {key}: {exc}") from exc
            raise

    async def remove_item(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                raise StorageError(f"Redis delete failed for key {key}: {exc}") from exc
            raise

    async def clear(self) -> None:
        try:
            keys = [key async for key in self._client.scan_iter(match=self._key("*"))]
            if keys:
                await self._client.delete(*keys)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                raise StorageError(f"Redis clear failed: {exc}") from exc
            raise


async def get_redis(redis_url: str) -> Redis:
    """Return the process-wide Redis client, connecting on first use."""

    global _redis_client

    # ALWAYS acquire lock first to prevent TOCTOU race
    async with _client_lock:
        if _redis_client is not None:
            return _redis_client

        client = Redis.from_url(redis_url, decode_responses=True, encoding="utf-8")
        try:
            await client.ping()
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                await client.aclose()
                raise StorageError(f"Redis connection failed: {exc}") from exc
            raise
        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""

    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def build_storage(settings: AppSettings) -> KeyValueStorage:
    """Instantiate the backend selected by ``STORAGE_BACKEND``."""

    backend = settings.resolved_storage_backend
    if backend == "memory":
        return MemoryStorage()
    if backend == "redis":
        client = await get_redis(settings.redis_url)
        return RedisStorage(client, namespace=settings.storage_namespace)
    return JsonFileStorage(settings.storage_path)


class FavoritesSnapshot:
    """Read and write the favorites set as a JSON array under one storage key.

    Both directions are best effort: a missing, unreadable or malformed
    snapshot loads as ``None`` and a failed write is logged, so the manager
    never fails because local persistence is unavailable.
    """

    def __init__(self, storage: KeyValueStorage, key: str = "favorites") -> None:
        self._storage = storage
        self._key = key

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> set[str] | None:
        try:
            raw = await self._storage.get_item(self._key)
        except Exception as exc:  # type: ignore[broad-except]
            logger.error("Error loading favorites from local storage: %s", exc)
            return None
        if raw is None:
            return None

        try:
            decoded: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Error parsing favorites snapshot %r: %s", self._key, exc)
            return None
        if not isinstance(decoded, list):
            logger.error(
                "Ignoring favorites snapshot %r: expected a JSON array, got %s",
                self._key,
                type(decoded).__name__,
            )
            return None

        favorites = {str(item) for item in decoded if isinstance(item, (str, int))}
        logger.debug("Loaded %d favorites from local storage", len(favorites))
        return favorites

    async def save(self, favorite_ids: Iterable[str]) -> None:
        payload = json.dumps(sorted(set(favorite_ids)))
        try:
            await self._storage.set_item(self._key, payload)
        except Exception as exc:  # type: ignore[broad-except]
            logger.error("Error saving favorites to local storage: %s", exc)
            return
        logger.debug("Saved favorites snapshot to local storage")


__all__ = [
    "FavoritesSnapshot",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "RedisStorage",
    "build_storage",
    "close_redis",
    "get_redis",
]
