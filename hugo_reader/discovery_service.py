"""Site structure discovery: overview, sections, pages and sitemap."""

from __future__ import annotations

from typing import Any

from .config_loader import config
from .errors import not_found
from .extractors import (
    count_sections,
    extract_pages,
    extract_sections,
    extract_sitemap,
    summarize_index,
)
from .models import DiscoveryRequest, DiscoveryResponse
from .resolver import Resolution
from .service_base import SiteQueryService
from .validators import accept_any, is_json_document, is_sitemap

INDEX_PATH = "/index.json"
SITEMAP_PATH = "/sitemap.xml"
OVERVIEW_ENDPOINTS = ("/index.json", "/api/index.json", "/sitemap.xml", "/robots.txt")


def _endpoint_validator(endpoint: str):
    if endpoint.endswith(".json"):
        return is_json_document
    if endpoint.endswith(".xml"):
        return is_sitemap
    return accept_any


class DiscoveryService(SiteQueryService):
    """Explores what a Hugo site publishes when exact paths are unknown."""

    cache_kind = "discovery"

    async def discover(self, request: DiscoveryRequest) -> dict[str, Any]:
        site_url = self._site_url(request.site_url)
        limit = self._limit(
            request.limit, config.discovery_default_limit, config.discovery_max_limit
        )
        self.logger.info("Discovery request: %s type=%s", site_url, request.discovery_type)

        handlers = {
            "overview": self._overview,
            "sections": self._sections,
            "pages": self._pages,
            "sitemap": self._sitemap,
        }
        results, metadata = await handlers[request.discovery_type](site_url, limit)

        response = DiscoveryResponse(
            discovery_type=request.discovery_type,
            results=results,
            metadata=metadata,
        )
        self.logger.info(
            "Discovery completed: type=%s results=%s site=%s",
            request.discovery_type,
            len(results),
            site_url,
        )
        return response.model_dump()

    async def _require(self, site_url: str, path: str, validator) -> Resolution:
        resolution = await self._resolve(site_url, [self._candidate(path, validator)])
        if resolution is None:
            self.logger.info("%s not available at %s", path, site_url)
            raise not_found({"site_url": site_url})
        return resolution

    async def _overview(self, site_url: str, limit: int) -> tuple[list[dict], dict[str, Any]]:
        results: list[dict[str, Any]] = []
        found: list[str] = []
        for endpoint in OVERVIEW_ENDPOINTS:
            resolution = await self._resolve(
                site_url, [self._candidate(endpoint, _endpoint_validator(endpoint))]
            )
            if resolution is None:
                continue
            found.append(endpoint)
            if endpoint.endswith(".json"):
                results.append(summarize_index(resolution.payload, endpoint, resolution.source))
            else:
                results.append(
                    {
                        "endpoint": endpoint,
                        "type": "other",
                        "url": resolution.source,
                        "status": "available",
                    }
                )

        metadata = {
            "discovery_method": "overview",
            "endpoints_found": len(found),
            "endpoints_checked": len(OVERVIEW_ENDPOINTS),
            "available_endpoints": found,
        }
        return results[:limit], metadata

    async def _sections(self, site_url: str, limit: int) -> tuple[list[dict], dict[str, Any]]:
        resolution = await self._require(site_url, INDEX_PATH, is_json_document)
        results = extract_sections(resolution.payload, limit)
        metadata = {
            "discovery_method": "sections",
            "total_sections": len(count_sections(resolution.payload)),
            "source": "index.json",
            "cached": resolution.from_cache,
        }
        return results, metadata

    async def _pages(self, site_url: str, limit: int) -> tuple[list[dict], dict[str, Any]]:
        resolution = await self._require(site_url, INDEX_PATH, is_json_document)
        results = extract_pages(resolution.payload, limit)
        metadata = {
            "discovery_method": "pages",
            "total_found": len(results),
            "source": "index.json",
            "limited": len(results) >= limit,
            "cached": resolution.from_cache,
        }
        return results, metadata

    async def _sitemap(self, site_url: str, limit: int) -> tuple[list[dict], dict[str, Any]]:
        resolution = await self._require(site_url, SITEMAP_PATH, is_sitemap)
        results = extract_sitemap(resolution.payload, site_url, limit)
        metadata = {
            "discovery_method": "sitemap",
            "total_found": len(results),
            "source": "sitemap.xml",
            "limited": len(results) >= limit,
            "cached": resolution.from_cache,
        }
        return results, metadata
