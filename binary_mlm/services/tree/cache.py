"""
Tree snapshot cache.

Per-root cache of ClientTreeResponse values with a short TTL.
Two backends: process-local memory and Redis. A failing Redis is a
cache miss, never an error.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import redis.asyncio as redis
from loguru import logger
from pydantic import ValidationError
from redis.exceptions import RedisError

from binary_mlm.config.constants import TREE_CACHE_KEY_PREFIX
from binary_mlm.config.settings import Settings, settings as default_settings
from binary_mlm.services.tree.schemas import ClientTreeResponse, client_tree_adapter


def tree_cache_key(root_id: int) -> str:
    """Cache key of the snapshot rooted at root_id."""
    return f"{TREE_CACHE_KEY_PREFIX}:{root_id}"


class TreeCache(ABC):
    """Snapshot cache keyed by root member."""

    @abstractmethod
    async def get(self, root_id: int) -> ClientTreeResponse | None:
        """Get cached snapshot, None on miss."""

    @abstractmethod
    async def set(self, root_id: int, tree: ClientTreeResponse) -> None:
        """Store snapshot for the configured TTL."""

    @abstractmethod
    async def delete(self, root_id: int) -> None:
        """Drop cached snapshot of root."""


class MemoryTreeCache(TreeCache):
    """Process-local TTL cache."""

    def __init__(
        self,
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize memory cache.

        Args:
            ttl_seconds: Entry lifetime
            clock: Monotonic time source
        """
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, tuple[float, ClientTreeResponse]] = {}

    async def get(self, root_id: int) -> ClientTreeResponse | None:
        key = tree_cache_key(root_id)
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, tree = entry
        if self.clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return tree

    async def set(self, root_id: int, tree: ClientTreeResponse) -> None:
        now = self.clock()
        self._sweep(now)
        self._entries[tree_cache_key(root_id)] = (now + self.ttl_seconds, tree)

    async def delete(self, root_id: int) -> None:
        self._entries.pop(tree_cache_key(root_id), None)

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep(self, now: float) -> None:
        """Drop every expired entry."""
        expired = [
            key for key, (expires_at, _) in self._entries.items()
            if now >= expires_at
        ]
        for key in expired:
            del self._entries[key]


class RedisTreeCache(TreeCache):
    """
    Redis-backed cache shared between processes.

    Snapshots are stored as JSON with SETEX. Redis errors are logged and
    degrade to a cache miss (degraded mode).
    """

    def __init__(
        self, redis_client: redis.Redis, ttl_seconds: int = 300
    ) -> None:
        """
        Initialize Redis cache.

        Args:
            redis_client: Async Redis client
            ttl_seconds: Entry lifetime
        """
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    async def get(self, root_id: int) -> ClientTreeResponse | None:
        key = tree_cache_key(root_id)
        try:
            payload = await self.redis_client.get(key)
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(f"Redis unavailable, tree cache miss for {key}: {e}")
            return None

        if payload is None:
            return None

        try:
            return client_tree_adapter.validate_json(payload)
        except ValidationError as e:
            logger.warning(f"Corrupt tree cache entry {key} ignored: {e}")
            return None

    async def set(self, root_id: int, tree: ClientTreeResponse) -> None:
        key = tree_cache_key(root_id)
        try:
            await self.redis_client.setex(
                key, self.ttl_seconds, client_tree_adapter.dump_json(tree)
            )
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(f"Redis unavailable, tree snapshot {key} not cached: {e}")

    async def delete(self, root_id: int) -> None:
        key = tree_cache_key(root_id)
        try:
            deleted = await self.redis_client.delete(key)
            if deleted:
                logger.debug(f"Cache invalidated: {key}")
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(f"Failed to invalidate tree cache {key}: {e}")


def build_tree_cache(source: Settings | None = None) -> TreeCache:
    """
    Build the cache backend selected by TREE_CACHE_BACKEND.

    Args:
        source: Settings (global settings if omitted)

    Returns:
        Tree cache
    """
    s = source or default_settings
    if s.tree_cache_backend == "redis":
        client = redis.Redis(
            host=s.redis_host,
            port=s.redis_port,
            password=s.redis_password,
            db=s.redis_db,
        )
        return RedisTreeCache(client, s.tree_cache_ttl_seconds)
    return MemoryTreeCache(s.tree_cache_ttl_seconds)


_tree_cache: TreeCache | None = None


def get_tree_cache() -> TreeCache:
    """Get the process-wide tree cache, built on first use."""
    global _tree_cache
    if _tree_cache is None:
        _tree_cache = build_tree_cache()
    return _tree_cache
