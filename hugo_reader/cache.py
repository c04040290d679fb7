"""
In-memory cache of validated site payloads.

Entries hold raw response bodies keyed by a canonical request identity, each
with its own lifetime and the HTTP validators (ETag, Last-Modified) the origin
returned. Storage is a byte-bounded cachetools.FIFOCache; expiry is tracked per
entry rather than by the container so stats can report expired entries without
evicting them. Access follows a reader/writer discipline built on asyncio
primitives: any number of concurrent readers, or one exclusive writer.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode, urlsplit, urlunsplit

from cachetools import FIFOCache

# Keys longer than this collapse to a fixed-width digest.
MAX_KEY_LENGTH = 200
HASH_KEY_PREFIX = "hash:"

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_BYTES = 64 * 1024 * 1024

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached response body plus its freshness metadata."""

    payload: bytes
    etag: str | None
    last_modified: str | None
    cached_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.cached_at > self.ttl

    @property
    def revalidatable(self) -> bool:
        """True when the origin gave us something to send in a conditional request."""
        return bool(self.etag or self.last_modified)


def build_key(base_url: str, path: str, params: Mapping[str, str] | None = None) -> str:
    """
    Build a deterministic cache key for a site resource.

    Parameters are sorted by name so the mapping's order never matters. A base
    that does not parse as an absolute URL degrades to plain concatenation of
    base and path instead of raising.

    Args:
        base_url: Site root the resource belongs to.
        path: Absolute endpoint path on the site.
        params: Query parameters (and any extra identity) for the request.

    Returns:
        Canonical URL string, or ``hash:<md5>`` when that string is too long.
    """
    try:
        parts = urlsplit(base_url)
    except ValueError as exc:
        logger.debug("Failed to parse base URL for cache key %r: %s", base_url, exc)
        return f"{base_url}{path}"

    if not parts.netloc:
        # Bare paths and scheme-less hosts are not usable as a URL identity.
        logger.debug("Base URL %r has no host, using plain cache key", base_url)
        return f"{base_url}{path}"

    # Encoded so a value holding "&" or "=" never reads as another parameter set.
    query = urlencode(sorted((params or {}).items()))
    key = urlunsplit((parts.scheme, parts.netloc, path, query, ""))
    if len(key) > MAX_KEY_LENGTH:
        digest = hashlib.md5(key.encode("utf-8"), usedforsecurity=False).hexdigest()
        key = f"{HASH_KEY_PREFIX}{digest}"
    return key


class ReadWriteLock:
    """
    asyncio reader/writer lock.

    Readers share the lock; a writer waits until no reader or writer holds it
    and then excludes everyone else.
    """

    def __init__(self) -> None:
        self._readers = 0
        self._writing = False
        # Created lazily so we never touch asyncio primitives before a loop exists.
        self._condition: asyncio.Condition | None = None

    def _ensure_condition(self) -> asyncio.Condition:
        if self._condition is None:
            self._condition = asyncio.Condition()
        return self._condition

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        condition = self._ensure_condition()
        async with condition:
            await condition.wait_for(lambda: not self._writing)
            self._readers += 1
        try:
            yield
        finally:
            async with condition:
                self._readers -= 1
                if self._readers == 0:
                    condition.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        condition = self._ensure_condition()
        async with condition:
            await condition.wait_for(lambda: not self._writing and self._readers == 0)
            self._writing = True
        try:
            yield
        finally:
            async with condition:
                self._writing = False
                condition.notify_all()


class ContentCache:
    """
    Shared store of validated site payloads.

    One instance is created at application start-up and handed to every
    resolver. It never talks to the network; conditional revalidation of
    expired entries is driven by the resolver through ``peek``.
    """

    def __init__(
        self,
        *,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_bytes: int = DEFAULT_MAX_BYTES,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        self.default_ttl = default_ttl
        self.max_bytes = max_bytes
        self._timer = timer
        # Oldest write is evicted first once the byte budget is exhausted.
        self._entries: FIFOCache[str, CacheEntry] = FIFOCache(
            maxsize=max_bytes,
            getsizeof=lambda entry: len(entry.payload),
        )
        self._lock = ReadWriteLock()

    build_key = staticmethod(build_key)

    async def get(self, key: str) -> bytes | None:
        """
        Return the cached payload for ``key`` or None.

        An expired entry is removed as a side effect of the lookup that finds it.
        """
        async with self._lock.read():
            entry = self._entries.get(key)

        if entry is None:
            logger.debug("Cache miss: %s", key)
            return None

        if entry.is_expired(self._timer()):
            logger.debug("Cache entry expired: %s", key)
            async with self._lock.write():
                # A concurrent set may have replaced the entry in the meantime.
                if self._entries.get(key) is entry:
                    del self._entries[key]
            return None

        logger.debug("Cache hit: %s", key)
        return entry.payload

    async def peek(self, key: str) -> CacheEntry | None:
        """Return the raw entry for ``key``, expired or not, without evicting it."""
        async with self._lock.read():
            return self._entries.get(key)

    async def set(
        self,
        key: str,
        payload: bytes,
        etag: str | None = None,
        last_modified: str | None = None,
        *,
        ttl: float | None = None,
    ) -> None:
        """
        Store a copy of ``payload`` under ``key``, replacing any previous entry.

        Args:
            key: Cache key from ``build_key``.
            payload: Response body; copied so later changes to the caller's
                buffer never leak into the cache.
            etag: ETag header returned by the origin, if any.
            last_modified: Last-Modified header returned by the origin, if any.
            ttl: Lifetime override for this kind of entry; defaults to the
                cache-wide default.
        """
        entry = CacheEntry(
            payload=bytes(payload),
            etag=etag or None,
            last_modified=last_modified or None,
            cached_at=self._timer(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        async with self._lock.write():
            try:
                self._entries[key] = entry
            except ValueError:
                # Payload alone exceeds the byte budget; drop any stale copy instead.
                self._entries.pop(key, None)
                logger.warning(
                    "Payload of %s bytes exceeds cache budget of %s bytes, not cached: %s",
                    len(entry.payload),
                    self.max_bytes,
                    key,
                )
                return
        logger.debug("Cached entry %s (%s bytes, etag=%s)", key, len(entry.payload), entry.etag)

    async def delete(self, key: str) -> None:
        async with self._lock.write():
            self._entries.pop(key, None)
        logger.debug("Deleted cache entry: %s", key)

    async def clear(self) -> None:
        async with self._lock.write():
            self._entries.clear()
        logger.info("Cleared all cache entries")

    async def clean_expired(self) -> int:
        """Remove every expired entry in one pass and return how many were removed."""
        async with self._lock.write():
            now = self._timer()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug("Cleaned %s expired cache entries", len(expired))
        return len(expired)

    async def stats(self) -> dict[str, Any]:
        """
        Point-in-time snapshot of the cache.

        ``expired_entries`` counts what ``clean_expired`` would remove right now;
        nothing is evicted by taking the snapshot.
        """
        async with self._lock.read():
            now = self._timer()
            entries = list(self._entries.values())

        return {
            "total_entries": len(entries),
            "expired_entries": sum(1 for entry in entries if entry.is_expired(now)),
            "total_size": sum(len(entry.payload) for entry in entries),
            "default_ttl": self.default_ttl,
        }


__all__ = ["CacheEntry", "ContentCache", "ReadWriteLock", "build_key"]
