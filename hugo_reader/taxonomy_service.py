"""Taxonomy listing backed by the candidate resolver."""

from __future__ import annotations

from typing import Any

from .errors import not_found
from .extractors import extract_taxonomies
from .models import TaxonomiesMetadata, TaxonomiesRequest, TaxonomiesResponse
from .service_base import SiteQueryService
from .validators import hugo_index_taxonomies, taxonomy_listing, taxonomy_structure

# Per-taxonomy list pages tried when no site-wide taxonomy listing exists.
INDIVIDUAL_TAXONOMIES = ("categories", "tags", "themes", "methods", "authors", "series", "topics")
INDIVIDUAL_DISCOVERY = "individual_discovery"


class TaxonomyService(SiteQueryService):
    """Lists the taxonomies (categories, tags, ...) a Hugo site defines."""

    async def get_taxonomies(self, request: TaxonomiesRequest) -> dict[str, Any]:
        site_url = self._site_url(request.site_url)
        self.logger.info("Taxonomies request: %s", site_url)

        resolution = await self._resolve(
            site_url,
            [
                self._candidate("/taxonomies/index.json", taxonomy_structure),
                self._candidate("/index.json", hugo_index_taxonomies),
                self._candidate("/api/taxonomies.json", taxonomy_structure),
            ],
        )
        if resolution is not None:
            taxonomies = extract_taxonomies(resolution.payload)
            source = resolution.source
            cached = resolution.from_cache
        else:
            self.logger.debug("Main taxonomy endpoints failed, trying individual endpoints")
            taxonomies, cached = await self._discover_individually(site_url)
            if not taxonomies:
                self.logger.info("No valid taxonomy data found at %s", site_url)
                raise not_found({"site_url": site_url})
            source = INDIVIDUAL_DISCOVERY

        response = TaxonomiesResponse(
            taxonomies=taxonomies,
            metadata=TaxonomiesMetadata(
                source_endpoint=source,
                taxonomy_count=len(taxonomies),
                cached=cached,
            ),
        )
        self.logger.info(
            "Retrieved %s taxonomies from %s via %s", len(taxonomies), site_url, source
        )
        return response.model_dump()

    async def _discover_individually(self, site_url: str) -> tuple[dict[str, str], bool]:
        """Try each well-known taxonomy list page; every page is its own resolution."""
        discovered: dict[str, str] = {}
        all_cached = True
        for name in INDIVIDUAL_TAXONOMIES:
            resolution = await self._resolve(
                site_url, [self._candidate(f"/{name}/index.json", taxonomy_listing)]
            )
            if resolution is None:
                continue
            discovered[name] = name
            all_cached = all_cached and resolution.from_cache
            self.logger.debug("Discovered taxonomy %s at %s", name, resolution.source)

        return discovered, bool(discovered) and all_cached
