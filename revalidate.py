"""
Page render cache and its invalidation.

Public page payloads are cached per logical path ("/", "/about-us",
"/products/<id>"). Every successful write calls `PageCache.invalidate` with
the paths that display the written data, so the next read renders again.

Backends:
1. Redis (shared between workers) when PAGE_CACHE_URL is set
2. In-memory fallback (single process, development/testing)
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, Optional, Tuple

import redis
from fastapi import Request

from config import Settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "page:"


class CacheBackend(ABC):
    """Abstract cache backend interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None:
        pass

    @abstractmethod
    def delete(self, *keys: str) -> int:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class MemoryBackend(CacheBackend):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._cache: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._cache[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._cache[key] = (value, self._clock() + ttl)

    def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._cache.pop(key, None) is not None:
                    removed += 1
        return removed

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class RedisBackend(CacheBackend):
    def __init__(self, url: str):
        self._client = redis.Redis.from_url(url, decode_responses=True)

    def get(self, key: str) -> Optional[Any]:
        value = self._client.get(key)
        return json.loads(value) if value else None

    def set(self, key: str, value: Any, ttl: int) -> None:
        self._client.set(key, json.dumps(value), ex=ttl)

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return self._client.delete(*keys)

    def clear(self) -> None:
        keys = list(self._client.scan_iter(match=f"{KEY_PREFIX}*"))
        if keys:
            self._client.delete(*keys)


class PageCache:
    def __init__(self, backend: Optional[CacheBackend] = None, ttl: int = 300, history_size: int = 100):
        self.backend = backend or MemoryBackend()
        self.ttl = ttl
        # Most recent invalidation batches, newest last
        self.history: Deque[Tuple[str, ...]] = deque(maxlen=history_size)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PageCache":
        if settings.PAGE_CACHE_URL:
            backend: CacheBackend = RedisBackend(settings.PAGE_CACHE_URL)
        else:
            backend = MemoryBackend()
        return cls(backend, ttl=settings.PAGE_CACHE_TTL)

    @staticmethod
    def key(path: str) -> str:
        return KEY_PREFIX + path

    def get_or_render(self, path: str, render: Callable[[], Any]) -> Any:
        key = self.key(path)
        try:
            cached = self.backend.get(key)
        except redis.RedisError as e:
            logger.warning("Page cache read failed for %s: %s", path, e)
            return render()
        if cached is not None:
            return cached
        value = render()
        try:
            self.backend.set(key, value, self.ttl)
        except redis.RedisError as e:
            logger.warning("Page cache write failed for %s: %s", path, e)
        return value

    def invalidate(self, paths: Iterable[str]) -> None:
        """Mark the given paths stale. Errors are logged, never raised."""
        paths = tuple(dict.fromkeys(paths))
        if not paths:
            return
        self.history.append(paths)
        try:
            self.backend.delete(*(self.key(p) for p in paths))
        except redis.RedisError as e:
            logger.warning("Page cache invalidation failed for %s: %s", ", ".join(paths), e)
            return
        logger.info("Revalidated %s", ", ".join(paths))

    def invalidated(self) -> set:
        """Every path invalidated since the history began."""
        return {path for batch in self.history for path in batch}

    def clear(self) -> None:
        self.history.clear()
        self.backend.clear()


def get_page_cache(request: Request) -> PageCache:
    return request.app.state.page_cache
