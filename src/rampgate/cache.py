"""Resilience cache for catalog lookups.

This is the one place that decides whether an upstream failure is hidden from
the caller. Policy:

1. A fresh entry is returned without calling the upstream.
2. Otherwise the fetcher runs. Success replaces the entry.
3. Failure serves the stale entry if one exists, else the static fallback.
   Nothing is raised, except credential/signing errors which no fallback can
   stand in for.

Entries are never proactively deleted; a stale entry remains a fallback source
until a newer successful fetch replaces it.

Concurrency: fetches for the same key are serialized by a per-key lock, so two
concurrent misses collapse into one upstream call (the waiter finds the fresh
entry written by the first). Writes therefore land in completion order.

Quote and session calls must never go through this cache.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Hashable, Optional, TypeVar

from rampgate.errors import FATAL_ERRORS, AuthenticationFailed, GatewayError
from rampgate.upstream.base import UpstreamResult

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 15 * 60


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and when it was stored."""

    key: Hashable
    value: T
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return (now - self.stored_at) < self.ttl

    def age(self, now: float) -> float:
        return now - self.stored_at


@dataclass
class CacheStats:
    """Counters for observability."""

    hits: int = 0
    misses: int = 0
    stale_served: int = 0
    fallback_served: int = 0
    auth_failures: int = 0
    last_error: Optional[str] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stale_served": self.stale_served,
            "fallback_served": self.fallback_served,
            "auth_failures": self.auth_failures,
            "last_error": self.last_error,
        }


class ResilienceCache:
    """TTL cache with stale-or-fallback degradation.

    Constructed once at startup; ``reset()`` exists for tests.

    Example:
        cache = ResilienceCache(ttl_seconds=900)
        catalog = await cache.get_or_fetch(
            ("config", "sell"),
            fetcher=lambda: client.call("GET", path, parse=normalizer.normalize_config),
            fallback=lambda: fallback_config(Direction.SELL),
        )
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the cache.

        Args:
            ttl_seconds: Default entry time-to-live
            clock: Monotonic time source
            logger: Observability sink (defaults to this module's logger)
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._entries: dict[Hashable, CacheEntry] = {}
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self.stats = CacheStats()

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        # No await between lookup and insert, so this is atomic on the event loop
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def peek(self, key: Hashable) -> Optional[CacheEntry]:
        """Return the entry for a key, fresh or stale, without fetching."""
        return self._entries.get(key)

    def store(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> CacheEntry:
        entry = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock(),
            ttl=self.ttl_seconds if ttl is None else ttl,
        )
        self._entries[key] = entry
        return entry

    def reset(self) -> None:
        """Drop all entries, locks and counters (tests only)."""
        self._entries.clear()
        self._locks.clear()
        self.stats = CacheStats()

    async def get_or_fetch(
        self,
        key: Hashable,
        fetcher: Callable[[], Awaitable[UpstreamResult[T]]],
        fallback: Callable[[], T],
        ttl: Optional[float] = None,
    ) -> T:
        """Return a cached value, fetching or degrading as needed.

        Args:
            key: Exact parameter tuple that identifies the request
            fetcher: Coroutine factory performing the signed, normalized call
            fallback: Static dataset for this key's domain

        Returns:
            Fresh, stale, or fallback value. Never raises for upstream failures.

        Raises:
            CredentialError: If the credential is unusable
            SigningError: If the request could not be signed
        """
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(self._clock()):
            self.stats.hits += 1
            return entry.value

        async with self._lock_for(key):
            # Another waiter may have refreshed the entry while we queued
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(self._clock()):
                self.stats.hits += 1
                return entry.value

            self.stats.misses += 1
            error = await self._fetch_into(key, fetcher, ttl)
            if error is None:
                return self._entries[key].value

            return self._degrade(key, error, fallback)

    async def _fetch_into(
        self,
        key: Hashable,
        fetcher: Callable[[], Awaitable[UpstreamResult[T]]],
        ttl: Optional[float],
    ) -> Optional[Exception]:
        """Run the fetcher; store on success, return the error on failure."""
        try:
            result = await fetcher()
        except FATAL_ERRORS:
            raise
        except Exception as e:
            self._logger.exception(f"Fetch for {key!r} raised unexpectedly")
            return e

        if result.success:
            self.store(key, result.data, ttl)
            self._logger.debug(f"Cached {key!r}")
            return None

        error = result.error or GatewayError(f"Fetch for {key!r} failed")
        if isinstance(error, FATAL_ERRORS):
            raise error
        return error

    def _degrade(self, key: Hashable, error: Exception, fallback: Callable[[], T]) -> T:
        self.stats.last_error = f"{type(error).__name__}: {error}"

        if isinstance(error, AuthenticationFailed):
            # Credential rot must not hide behind "upstream hiccup"
            self.stats.auth_failures += 1
            self._logger.error(
                f"Upstream rejected credentials while fetching {key!r} "
                f"(HTTP {error.status_code}); serving degraded data"
            )

        stale = self._entries.get(key)
        if stale is not None:
            self.stats.stale_served += 1
            self._logger.warning(
                f"Serving stale {key!r} (age {stale.age(self._clock()):.0f}s) after {type(error).__name__}: {error}"
            )
            return stale.value

        self.stats.fallback_served += 1
        self._logger.warning(f"Serving static fallback for {key!r} after {type(error).__name__}: {error}")
        return fallback()
