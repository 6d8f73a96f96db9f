"""
Fail-open Redis cache for the API's read paths.

Every key is namespaced as ``<version>:<key>`` so all cached data can be
invalidated at once by bumping CACHE_VERSION. Values are stored as JSON text.

The cache is never a correctness boundary: when REDIS_URL is unset, or Redis is
unreachable, ``get`` returns None and ``set`` / ``delete`` do nothing. Errors are
logged and swallowed, never raised to the caller.
"""

import json
import logging
import os
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

CACHE_VERSION: str = os.getenv("CACHE_VERSION", "v1")
DEFAULT_TTL_SECONDS = 3600

# Transport failures surface as RedisError subclasses or raw socket errors.
_CACHE_ERRORS = (RedisError, OSError)


def cache_key(key: str, version: str = CACHE_VERSION) -> str:
    """Build a version-prefixed Redis key."""
    return f"{version}:{key}"


class Cache:
    """
    Thin get/set/delete wrapper over an async Redis client.

    Construct once at startup, call ``connect()``, and ``close()`` at shutdown.
    A Cache built without a URL is permanently disabled.
    """

    def __init__(self, url: str | None = None, version: str = CACHE_VERSION) -> None:
        self.url = url
        self.version = version
        self._client: aioredis.Redis | None = None
        self._connected = False

    @classmethod
    def from_env(cls) -> "Cache":
        """Build a Cache from REDIS_URL (disabled when unset)."""
        return cls(url=os.getenv("REDIS_URL"))

    @property
    def enabled(self) -> bool:
        return self._client is not None and self._connected

    async def connect(self) -> None:
        """
        Create the client and ping Redis once.

        A failed ping leaves the cache disabled instead of aborting startup.
        """
        if not self.url:
            logger.warning("REDIS_URL is not set. Caching will be disabled.")
            return

        try:
            self._client = aioredis.from_url(self.url, decode_responses=True)
            await self._client.ping()
            self._connected = True
            logger.info("Connected to Redis")
        except (*_CACHE_ERRORS, ValueError) as e:
            # ValueError: malformed REDIS_URL
            self._connected = False
            logger.error("Failed to connect to Redis: %s", e)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            logger.info("Disconnected from Redis")
        self._client = None
        self._connected = False

    async def get(self, key: str) -> Any | None:
        """Return the cached value for key, or None on a miss or any error."""
        if not self.enabled:
            return None
        try:
            data = await self._client.get(cache_key(key, self.version))
            return json.loads(data) if data else None
        except (*_CACHE_ERRORS, ValueError) as e:
            logger.error("Error getting cache for key %s: %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        """Store a JSON-serializable value under key with a TTL."""
        if not self.enabled:
            return
        try:
            await self._client.set(cache_key(key, self.version), json.dumps(value), ex=ttl_seconds)
        except (*_CACHE_ERRORS, TypeError, ValueError) as e:
            logger.error("Error setting cache for key %s: %s", key, e)

    async def delete(self, *keys: str) -> None:
        """Remove one or more keys."""
        if not self.enabled or not keys:
            return
        try:
            await self._client.delete(*(cache_key(key, self.version) for key in keys))
        except _CACHE_ERRORS as e:
            logger.error("Error deleting cache for keys %s: %s", keys, e)

    async def check(self) -> str:
        """Ping Redis and return 'ok', 'disabled', or an error message string."""
        if self._client is None:
            return "disabled"
        try:
            await self._client.ping()
            self._connected = True
            return "ok"
        except Exception as e:
            return str(e)
