"""Result caching for computed analyses."""

import logging
import os
import time
from collections.abc import Callable
from typing import Any

import diskcache

logger = logging.getLogger(__name__)

_MISSING = object()


class ResultCache:
    """
    Timestamped result cache on top of diskcache.

    Entries are stored as {value, stored_at}; freshness is decided on read
    against the injected clock, so tests can move time forward without
    sleeping. Two callers racing on the same stale key may both compute and
    both write; the last write wins.
    """

    def __init__(
        self,
        cache_dir: str | None = None,
        ttl: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if cache_dir is None:
            cache_dir = os.environ.get("CACHE_DIR", ".cache/signals")
        if ttl is None:
            ttl = float(os.environ.get("CACHE_TTL", "3600"))  # 1 hour
        self.cache: diskcache.Cache = diskcache.Cache(cache_dir)
        self.ttl = ttl
        self.clock = clock

    @staticmethod
    def cache_key(entity: str, kind: str, param: str | None = None) -> str:
        """
        Canonical key for an (entity, data kind, parameter) triple.

        Example: cache_key("AAPL", "timing", "daily") -> "signals://AAPL/timing/daily"
        """
        key = f"signals://{entity.upper()}/{kind}"
        if param:
            key = f"{key}/{param}"
        return key

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a cached value if it is still fresh.

        Args:
            key: Canonical key
            default: Returned when the key is missing or expired

        Returns:
            Cached value (which may itself be None), or default
        """
        entry = self.cache.get(key, default=_MISSING)
        if entry is _MISSING:
            logger.debug(f"cache miss: {key}")
            return default
        age = self.clock() - entry["stored_at"]
        if age >= self.ttl:
            logger.debug(f"cache expired: {key} (age={age:.0f}s)")
            return default
        logger.debug(f"cache hit: {key} (age={age:.0f}s)")
        return entry["value"]

    def set(self, key: str, value: Any) -> None:
        """Store value, overwriting any previous entry for the key."""
        self.cache.set(key, {"value": value, "stored_at": self.clock()})

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        """Return the fresh cached value, or compute, store and return a new one."""
        value = self.get(key, default=_MISSING)
        if value is not _MISSING:
            return value
        value = compute()
        self.set(key, value)
        return value

    def exists(self, key: str) -> bool:
        """Check if a fresh entry exists for key."""
        return self.get(key, default=_MISSING) is not _MISSING

    def clear(self) -> None:
        """Clear all cached results."""
        self.cache.clear()


# Global instance
result_cache = ResultCache()
