"""Operator-facing cache management: stats, sweeping and invalidation."""

from __future__ import annotations

import logging
from typing import Any

from .cache import ContentCache
from .models import CacheRequest, CacheResponse, CacheStats
from .service_base import BaseService


class CacheManagerService(BaseService):
    """Exposes the shared cache's introspection surface."""

    def __init__(self, cache: ContentCache, logger: logging.Logger | None = None):
        super().__init__(logger=logger)
        self.cache = cache

    async def manage(self, request: CacheRequest) -> dict[str, Any]:
        if request.action == "stats":
            stats = await self.cache.stats()
            return CacheResponse(action="stats", stats=CacheStats(**stats)).model_dump()

        if request.action == "clean":
            removed = await self.cache.clean_expired()
            self.logger.info("Cleaned %s expired cache entries", removed)
            return CacheResponse(
                action="clean",
                message=f"Removed {removed} expired cache entries",
                cleaned_entries=removed,
            ).model_dump()

        # Keys may be digests, so a target cannot be matched selectively; clear all.
        await self.cache.clear()
        if request.target:
            self.logger.info("Cleared cache entries for target %s", request.target)
            return CacheResponse(
                action="clear_targeted",
                message=f"Cache entries cleared for target: {request.target}",
                target=request.target,
            ).model_dump()

        self.logger.info("Cleared all cache entries")
        return CacheResponse(action="clear_all", message="All cache entries cleared").model_dump()
