# price_compare/storage/result_cache.py

"""Cache-aside store for finished comparison results.

Entries are keyed by a SHA-256 of the raw search text, so identical
queries share an entry regardless of which identifiers accompanied them.
"""

import hashlib
import logging
from decimal import InvalidOperation

import redis

from price_compare.config.settings import Settings
from price_compare.errors import CacheError
from price_compare.models.comparison import ComparisonResult
from price_compare.storage.memory_backend import KeyValueBackend, MemoryBackend

logger = logging.getLogger("price_compare.cache")


def create_backend(redis_url: str | None = None) -> KeyValueBackend:
    """Redis when a URL is configured, the in-process store otherwise."""
    url = redis_url if redis_url is not None else Settings.REDIS_URL
    if url:
        logger.info("Using Redis result cache at %s", url)
        client: KeyValueBackend = redis.Redis.from_url(
            url, decode_responses=True
        )
        return client
    logger.info("REDIS_URL not set, using in-process result cache")
    return MemoryBackend()


def cache_key(search_text: str) -> str:
    digest = hashlib.sha256(search_text.encode("utf-8")).hexdigest()
    return f"{Settings.CACHE_KEY_PREFIX}{digest}"


class ResultCache:
    """Reads, writes and invalidates cached :class:`ComparisonResult` s."""

    def __init__(
        self,
        backend: KeyValueBackend | None = None,
        ttl: int | None = None,
    ) -> None:
        self.backend = backend if backend is not None else create_backend()
        self.ttl = ttl if ttl is not None else Settings.CACHE_TTL_SECONDS

    def get(self, search_text: str) -> ComparisonResult | None:
        """Return the cached result, or ``None`` on a miss.

        Raises:
            CacheError: backend unreachable or entry undecodable.
        """
        key = cache_key(search_text)
        try:
            payload = self.backend.get(key)
        except redis.exceptions.RedisError as exc:
            raise CacheError(f"Cache read failed: {exc}") from exc

        if payload is None:
            logger.debug("Cache miss for '%s'", search_text)
            return None
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")

        try:
            result = ComparisonResult.from_json(payload)
        except (ValueError, KeyError, TypeError, InvalidOperation) as exc:
            raise CacheError(f"Corrupt cache entry {key}: {exc}") from exc

        logger.info("Cache hit for '%s'", search_text)
        return result

    def put(
        self,
        search_text: str,
        result: ComparisonResult,
        ttl: int | None = None,
    ) -> None:
        """Store *result*; a failed write is logged, never raised."""
        key = cache_key(search_text)
        expiry = ttl if ttl is not None else self.ttl
        try:
            self.backend.setex(key, expiry, result.to_json())
        except (redis.exceptions.RedisError, TypeError) as exc:
            logger.warning("Failed to cache result for '%s': %s", search_text, exc)
            return
        logger.debug("Cached result for '%s' (ttl=%ds)", search_text, expiry)

    def invalidate(self, search_text: str) -> bool:
        """Drop the entry; ``True`` if one existed.

        Raises:
            CacheError: backend unreachable.
        """
        try:
            removed = self.backend.delete(cache_key(search_text))
        except redis.exceptions.RedisError as exc:
            raise CacheError(f"Cache invalidation failed: {exc}") from exc
        logger.info("Invalidated cache for '%s' (%d removed)", search_text, removed)
        return bool(removed)

