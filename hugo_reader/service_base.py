"""Shared service helpers and base classes.

Provides lightweight base classes to give all services consistent logging
and shared site-resolution helpers without coupling them to HTTP or FastAPI
routing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol
from urllib.parse import urlsplit

from .config_loader import config
from .errors import ERR_INVALID_REQUEST, ERR_INVALID_URL, api_error
from .resolver import Candidate, Resolution, Resolver
from .site_client import Fetcher, normalize_site_url


class SiteFetcherFactory(Protocol):
    """Anything that can hand out a fetch capability bound to one site."""

    def fetcher(self, site_url: str) -> Fetcher: ...


class BaseService:
    """Base class that provides a logger for derived services."""

    def __init__(self, logger: logging.Logger | None = None):
        # Use module-qualified name so loggers stay readable when subclassed
        self.logger = logger or logging.getLogger(self.__class__.__module__)


class SiteQueryService(BaseService):
    """
    Base class for query operations that resolve candidates against a site.

    Subclasses set ``cache_kind`` when their entries should live longer or
    shorter than the cache default.
    """

    cache_kind: str | None = None

    def __init__(
        self,
        resolver: Resolver,
        client: SiteFetcherFactory,
        logger: logging.Logger | None = None,
        ttl: float | None = None,
    ):
        super().__init__(logger=logger)
        self.resolver = resolver
        self.client = client
        if ttl is None and self.cache_kind:
            ttl = config.kind_ttl(self.cache_kind)
        self.ttl = ttl

    def _site_url(self, site_url: str) -> str:
        """Normalize the caller's site URL, rejecting anything without an http(s) host."""
        normalized = normalize_site_url(site_url)
        try:
            parts = urlsplit(normalized)
        except ValueError as exc:
            raise api_error(ERR_INVALID_URL, context={"site_url": site_url}) from exc
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise api_error(ERR_INVALID_URL, context={"site_url": site_url})
        return normalized

    def _limit(self, requested: int | None, default: int, maximum: int) -> int:
        if requested is None:
            return default
        if not 1 <= requested <= maximum:
            raise api_error(ERR_INVALID_REQUEST, f"limit must be between 1 and {maximum}")
        return requested

    def _candidate(self, path: str, validator, **kwargs) -> Candidate:
        return Candidate(path=path, validator=validator, ttl=self.ttl, **kwargs)

    async def _resolve(self, site_url: str, candidates: Sequence[Candidate]) -> Resolution | None:
        return await self.resolver.resolve(site_url, candidates, self.client.fetcher(site_url))
