"""Response cache — in-process TTL store or Redis.

Services cache serialised pydantic responses under ``<namespace>:<key>``
(e.g. ``members:all-active``, ``players:<uuid>``) and evict on writes.
REDIS_URL selects the Redis backend; otherwise entries live in a
process-local dict with per-entry expiry.

Usage:
    members = await cache.get_or_load(
        "members", "all-active", _MEMBER_LIST, lambda: self._load_active(db)
    )
    await cache.evict("members", "all-active", str(member_id))
"""

import time
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger
from pydantic import TypeAdapter

from app.config import settings

T = TypeVar("T")


class MemoryBackend:
    """Process-local TTL store keyed by full cache key."""

    name: str = "memory"

    def __init__(self) -> None:
        self._store: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if expires_at < time.monotonic():
            self._store.pop(key, None)
            return None
        return payload

    async def set(self, key: str, payload: str, ttl: int) -> None:
        self._store[key] = (time.monotonic() + ttl, payload)

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._store.pop(key, None)

    async def clear(self, prefix: str) -> int:
        doomed = [k for k in self._store if k.startswith(prefix)]
        for key in doomed:
            del self._store[key]
        return len(doomed)

    async def count(self, prefix: str) -> int:
        return sum(1 for k in self._store if k.startswith(prefix))

    async def ping(self) -> bool:
        return True


class RedisBackend:
    """Redis-backed store; keys expire server-side."""

    name: str = "redis"

    def __init__(self, url: str) -> None:
        # Optional dependency, only needed when REDIS_URL is configured
        import redis.asyncio as aioredis

        self._client = aioredis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, payload: str, ttl: int) -> None:
        await self._client.set(key, payload, ex=ttl)

    async def delete(self, *keys: str) -> None:
        if keys:
            await self._client.delete(*keys)

    async def clear(self, prefix: str) -> int:
        removed = 0
        async for key in self._client.scan_iter(match=f"{prefix}*"):
            removed += await self._client.delete(key)
        return removed

    async def count(self, prefix: str) -> int:
        total = 0
        async for _ in self._client.scan_iter(match=f"{prefix}*"):
            total += 1
        return total

    async def ping(self) -> bool:
        return bool(await self._client.ping())


class CacheService:
    """Namespaced JSON cache with hit/miss accounting.

    Backend errors never fail a request: reads fall through to the loader
    and writes are skipped, with a warning logged.
    """

    def __init__(self) -> None:
        self._backend: MemoryBackend | RedisBackend | None = None
        self.hits: int = 0
        self.misses: int = 0

    @property
    def backend(self) -> MemoryBackend | RedisBackend:
        if self._backend is None:
            self._backend = RedisBackend(settings.REDIS_URL) if settings.REDIS_URL else MemoryBackend()
        return self._backend

    def _key(self, namespace: str, key: str) -> str:
        return f"{settings.CACHE_KEY_PREFIX}:{namespace}:{key}"

    def _prefix(self, namespace: str | None) -> str:
        if namespace is None:
            return f"{settings.CACHE_KEY_PREFIX}:"
        return f"{settings.CACHE_KEY_PREFIX}:{namespace}:"

    async def get_or_load(
        self,
        namespace: str,
        key: str,
        adapter: TypeAdapter[T],
        loader: Callable[[], Awaitable[T]],
        ttl: int | None = None,
    ) -> T:
        """Return the cached value or compute, store and return it.

        Args:
            namespace: Cache name, e.g. "members"
            key: Entry key within the namespace
            adapter: Type adapter used to rebuild the value from JSON
            loader: Coroutine factory producing the value on a miss
            ttl: Entry lifetime in seconds, defaults to CACHE_DEFAULT_TTL_SECONDS

        Returns:
            T: Cached or freshly loaded value
        """
        full_key = self._key(namespace, key)
        try:
            payload = await self.backend.get(full_key)
        except Exception as exc:
            logger.warning("Cache read failed for {key}: {error}", key=full_key, error=exc)
            payload = None

        if payload is not None:
            self.hits += 1
            return adapter.validate_json(payload)

        self.misses += 1
        value: T = await loader()
        try:
            await self.backend.set(
                full_key,
                adapter.dump_json(value).decode("utf-8"),
                ttl or settings.CACHE_DEFAULT_TTL_SECONDS,
            )
        except Exception as exc:
            logger.warning("Cache write failed for {key}: {error}", key=full_key, error=exc)
        return value

    async def evict(self, namespace: str, *keys: str) -> None:
        """Remove specific entries from a namespace."""
        try:
            await self.backend.delete(*(self._key(namespace, k) for k in keys))
        except Exception as exc:
            logger.warning("Cache evict failed in {namespace}: {error}", namespace=namespace, error=exc)

    async def clear(self, namespace: str | None = None) -> int:
        """Remove every entry of a namespace, or of all namespaces when None.

        Returns:
            int: Number of removed entries
        """
        try:
            return await self.backend.clear(self._prefix(namespace))
        except Exception as exc:
            logger.warning("Cache clear failed for {namespace}: {error}", namespace=namespace, error=exc)
            return 0

    async def ping(self) -> bool:
        return await self.backend.ping()

    async def stats(self) -> dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            "backend": self.backend.name,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / lookups, 4) if lookups else 0.0,
            "keys": await self.backend.count(self._prefix(None)),
        }

    def reset_stats(self) -> None:
        self.hits = 0
        self.misses = 0


# Singleton instance
cache: CacheService = CacheService()
