"""Search service: Hugo-native search endpoints first, content scanning second."""

from __future__ import annotations

import time
from typing import Any

from .config_loader import config
from .errors import ERR_INVALID_REQUEST, api_error, not_found
from .extractors import extract_search_hits, rank_pages
from .models import SearchMetadata, SearchRequest, SearchResponse
from .resolver import Candidate, Resolution
from .service_base import SiteQueryService
from .validators import hugo_index_search, search_results

INDEX_PATH = "/index.json"

# (path, name of the query parameter the endpoint expects)
NATIVE_ENDPOINTS = (
    ("/search.json", "q"),
    ("/api/search.json", "query"),
    ("/search/index.json", "q"),
)
# Parameters the native endpoints already use; a taxonomy filter may not shadow them.
RESERVED_PARAMS = frozenset({"q", "query", "search", "type", "limit"})
SCAN_ENDPOINTS = (
    "/content/index.json",
    "/posts/index.json",
    "/api/content.json",
    "/all.json",
    "/site.json",
)


class SearchService(SiteQueryService):
    """Service for keyword search across a Hugo site."""

    cache_kind = "search"

    async def search(self, request: SearchRequest) -> dict[str, Any]:
        start_time = time.time()
        site_url = self._site_url(request.site_url)
        limit = self._limit(request.limit, config.search_default_limit, config.search_max_limit)
        if request.taxonomy in RESERVED_PARAMS:
            raise api_error(
                ERR_INVALID_REQUEST, f"taxonomy name '{request.taxonomy}' is a reserved parameter"
            )

        self.logger.info("Search request: %s site=%s", request.query, site_url)

        fallback_used = False
        method = "hugo_native"
        resolution = await self._resolve(site_url, self._native_candidates(request, limit))
        if resolution is None:
            self.logger.debug("Hugo-native search unavailable, falling back to content scan")
            fallback_used = True
            method = "content_scan"
            resolution = await self._resolve(site_url, self._scan_candidates())
        if resolution is None:
            self.logger.info("No searchable content found at %s", site_url)
            raise not_found({"site_url": site_url})

        results = self._hits(resolution, request, scan=fallback_used)
        limited = len(results) > limit
        results = results[:limit]

        response = SearchResponse(
            query=request.query,
            results=results,
            metadata=SearchMetadata(
                search_method=method,
                source_endpoint=resolution.source,
                result_count=len(results),
                cached=resolution.from_cache,
                fallback_used=fallback_used,
                limited=limited,
            ),
        )

        response_time = time.time() - start_time
        self.logger.info(
            "Search completed: %s results in %.2fs (fallback=%s)",
            len(results),
            response_time,
            fallback_used,
        )
        return response.model_dump()

    def _native_candidates(self, request: SearchRequest, limit: int) -> list[Candidate]:
        filters: dict[str, str] = {}
        if request.content_type:
            filters["type"] = request.content_type
        if request.taxonomy and request.term:
            filters[request.taxonomy] = request.term
        filters["limit"] = str(limit)

        candidates = [
            self._candidate(path, search_results, params={query_param: request.query, **filters})
            for path, query_param in NATIVE_ENDPOINTS
        ]
        candidates.append(
            self._candidate(
                INDEX_PATH, hugo_index_search, params={"search": request.query, **filters}
            )
        )
        return candidates

    def _scan_candidates(self) -> list[Candidate]:
        return [self._candidate(INDEX_PATH, hugo_index_search)] + [
            self._candidate(path, search_results) for path in SCAN_ENDPOINTS
        ]

    def _hits(
        self, resolution: Resolution, request: SearchRequest, *, scan: bool
    ) -> list[dict[str, Any]]:
        # A static index ignores query parameters, so it is always ranked locally.
        if scan or resolution.candidate.path == INDEX_PATH:
            return rank_pages(
                resolution.payload,
                request.query,
                content_type=request.content_type,
                taxonomy=request.taxonomy,
                term=request.term,
            )
        return extract_search_hits(resolution.payload)
