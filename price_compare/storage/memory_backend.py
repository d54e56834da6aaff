# price_compare/storage/memory_backend.py

"""In-process key/value store with TTL, used when no Redis URL is set."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger("price_compare.cache")


class KeyValueBackend(Protocol):
    """The subset of the Redis client API the engine relies on."""

    def get(self, name: str) -> str | bytes | None: ...

    def setex(self, name: str, time: int, value: str) -> object: ...

    def delete(self, *names: str) -> int: ...


@dataclass
class _Entry:
    """A stored value and the monotonic time it stops being valid."""

    value: str
    expires_at: float


class MemoryBackend:
    """Dict-backed stand-in for a Redis server, safe across threads.

    Mirrors the ``get`` / ``setex`` / ``delete`` calls of ``redis.Redis``
    so the cache layer does not care which one it talks to.  Expired
    entries are swept on every read and write.
    """

    def __init__(
        self, clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, name: str) -> str | None:
        with self._lock:
            self._evict_expired(self._clock())
            entry = self._entries.get(name)
            return entry.value if entry is not None else None

    def setex(self, name: str, time: int, value: str) -> bool:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            self._entries[name] = _Entry(value=value, expires_at=now + time)
        return True

    def _evict_expired(self, now: float) -> None:
        """Drop every expired entry; caller holds the lock."""
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))

    def size(self) -> int:
        """Number of entries currently held, expired or not."""
        with self._lock:
            return len(self._entries)

    def delete(self, *names: str) -> int:
        removed = 0
        with self._lock:
            for name in names:
                if self._entries.pop(name, None) is not None:
                    removed += 1
        return removed

    def ping(self) -> bool:
        return True

    def clear(self) -> int:
        """Purge all entries, returning how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Memory cache purged (%d entries removed)", count)
        return count
