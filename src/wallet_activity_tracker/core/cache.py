"""TTL-based cache for shaped activity feeds."""

import time
from collections.abc import Callable

from wallet_activity_tracker.core.models import ActivityRecord

DEFAULT_TTL = 60.0

CacheKey = tuple[str, int]


class CacheEntry:
    """
    Cache entry with TTL support.

    Parameters
    ----------
    records : list[ActivityRecord]
        Cached feed, already ordered and truncated
    ttl : float
        Time-to-live in seconds
    created_at : float
        Clock reading when the entry was stored

    """

    def __init__(self, records: list[ActivityRecord], ttl: float, created_at: float) -> None:
        self.records = records
        self.ttl = ttl
        self.created_at = created_at

    def is_expired(self, now: float) -> bool:
        """
        Check if cache entry has expired.

        Parameters
        ----------
        now : float
            Current clock reading

        Returns
        -------
        bool
            True once ``ttl`` seconds or more have elapsed

        """
        return (now - self.created_at) >= self.ttl


class ActivityCache:
    """
    In-memory cache of activity feeds keyed by (address, chain id).

    Expired entries read as absent but stay in place until overwritten
    or until :meth:`cleanup_expired` is called.

    Parameters
    ----------
    ttl : float
        Time-to-live in seconds for cache entries
    clock : Callable[[], float]
        Monotonic clock (injectable for tests)

    """

    def __init__(self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._cache: dict[CacheKey, CacheEntry] = {}

    @staticmethod
    def make_key(address: str, chain_id: int) -> CacheKey:
        # Addresses are case-insensitive hex
        return (address.lower(), chain_id)

    def get(self, address: str, chain_id: int) -> list[ActivityRecord] | None:
        """
        Get cached records if they exist and haven't expired.

        Returns
        -------
        list[ActivityRecord] | None
            Cached records if found and valid, None otherwise

        """
        entry = self._cache.get(self.make_key(address, chain_id))
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry.records

    def set(self, address: str, chain_id: int, records: list[ActivityRecord]) -> None:
        """Store records, replacing any prior entry for the key."""
        self._cache[self.make_key(address, chain_id)] = CacheEntry(records, self.ttl, self._clock())

    def invalidate(self, address: str, chain_id: int) -> None:
        """Drop the entry for one key, if any."""
        self._cache.pop(self.make_key(address, chain_id), None)

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries from cache.

        Returns
        -------
        int
            Number of entries removed

        """
        now = self._clock()
        expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(now)]
        for key in expired_keys:
            del self._cache[key]
        return len(expired_keys)

    def __len__(self) -> int:
        return len(self._cache)
