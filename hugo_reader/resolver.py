"""
Ordered multi-candidate endpoint resolution.

Hugo sites expose the same information under many different paths depending
on theme and output configuration. A query operation describes where its data
might live as an ordered list of candidates, each with a validator that
recognises the expected shape. The resolver walks that list once, cache first
and network second, and returns the first payload that validates.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .cache import CacheEntry, ContentCache
from .site_client import Fetcher, FetchError, resource_url
from .validators import Validator


@dataclass(frozen=True)
class Candidate:
    """
    One place a query operation's data might live.

    Attributes:
        path: Absolute endpoint path, already expanded for this call.
        validator: Predicate over the raw body; True iff it has the expected shape.
        params: Query parameters sent to the origin (also part of the cache key).
        key_params: Extra identity folded into the cache key only, for validators
            that depend on call context such as a taxonomy name.
        ttl: Lifetime override for entries written by this candidate.
    """

    path: str
    validator: Validator
    params: Mapping[str, str] = field(default_factory=dict)
    key_params: Mapping[str, str] = field(default_factory=dict)
    ttl: float | None = None

    def cache_params(self) -> dict[str, str]:
        return {**self.key_params, **self.params}


@dataclass(frozen=True)
class Resolution:
    """The validated payload plus which candidate produced it (for diagnostics only)."""

    payload: bytes
    candidate: Candidate
    source: str
    from_cache: bool


class Resolver:
    """Resolves candidate lists against a shared ContentCache and a fetch capability."""

    def __init__(self, cache: ContentCache, logger: logging.Logger | None = None):
        self.cache = cache
        self.logger = logger or logging.getLogger(self.__class__.__module__)

    async def resolve(
        self,
        site_url: str,
        candidates: Sequence[Candidate],
        fetch: Fetcher,
    ) -> Resolution | None:
        """
        Return the first candidate payload that passes its validator.

        Candidates are tried strictly in order and one at a time. Failures of
        individual candidates are logged and skipped; only the aggregate outcome
        is reported.

        Args:
            site_url: Normalized site root; the identity part of every cache key.
            candidates: Ordered from most specific to most generic.
            fetch: Fetch capability bound to ``site_url``.

        Returns:
            A Resolution, or None when no candidate produced a valid payload.
        """
        for candidate in candidates:
            resolution = await self._try_candidate(site_url, candidate, fetch)
            if resolution is not None:
                return resolution

        self.logger.debug(
            "No candidate satisfied validation for %s (%s tried)", site_url, len(candidates)
        )
        return None

    async def _try_candidate(
        self,
        site_url: str,
        candidate: Candidate,
        fetch: Fetcher,
    ) -> Resolution | None:
        key = self.cache.build_key(site_url, candidate.path, candidate.cache_params())
        source = resource_url(site_url, candidate.path)
        self.logger.debug("Trying endpoint %s (cache key %s)", source, key)

        # Look before get: get evicts expired entries, and their validators are
        # what a conditional request needs.
        stale = await self.cache.peek(key)
        cached = await self.cache.get(key)
        if cached is not None:
            if candidate.validator(cached):
                return Resolution(cached, candidate, source, from_cache=True)
            # Wrong shape, not just old: drop it and ask the origin again.
            self.logger.debug("Cached data failed validation, invalidating %s", source)
            await self.cache.delete(key)
            stale = None

        conditional = stale if stale is not None and stale.revalidatable else None
        try:
            result = await fetch(
                candidate.path,
                candidate.params,
                etag=conditional.etag if conditional else None,
                last_modified=conditional.last_modified if conditional else None,
            )
        except FetchError as exc:
            self.logger.debug("Failed to fetch endpoint %s: %s", source, exc)
            return None

        if result.not_modified and conditional is not None:
            return await self._revalidated(
                key, candidate, source, conditional, result.etag, result.last_modified
            )

        if not result.ok:
            self.logger.debug("HTTP %s from endpoint %s", result.status, source)
            return None

        if not candidate.validator(result.body):
            self.logger.debug("Response failed validation: %s", source)
            return None

        await self.cache.set(
            key, result.body, result.etag, result.last_modified, ttl=candidate.ttl
        )
        self.logger.info("Found and cached %s", source)
        return Resolution(result.body, candidate, source, from_cache=False)

    async def _revalidated(
        self,
        key: str,
        candidate: Candidate,
        source: str,
        stale: CacheEntry,
        etag: str | None,
        last_modified: str | None,
    ) -> Resolution | None:
        """Handle a 304 for an expired entry: refresh it if it still validates."""
        if not candidate.validator(stale.payload):
            self.logger.debug("Revalidated entry failed validation: %s", source)
            return None

        await self.cache.set(
            key,
            stale.payload,
            etag or stale.etag,
            last_modified or stale.last_modified,
            ttl=candidate.ttl,
        )
        self.logger.debug("Cache entry validated as current by origin: %s", source)
        return Resolution(stale.payload, candidate, source, from_cache=True)


__all__ = ["Candidate", "Resolution", "Resolver", "Validator"]
