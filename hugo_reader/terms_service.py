"""Taxonomy term listing backed by the candidate resolver."""

from __future__ import annotations

from functools import partial
from typing import Any

from .errors import ERR_INVALID_REQUEST, api_error, not_found
from .extractors import extract_terms
from .models import TermsMetadata, TermsRequest, TermsResponse
from .service_base import SiteQueryService
from .validators import hugo_index_terms, terms_structure


class TermsService(SiteQueryService):
    """Lists the terms used for one taxonomy, e.g. every tag on the site."""

    async def get_terms(self, request: TermsRequest) -> dict[str, Any]:
        site_url = self._site_url(request.site_url)
        taxonomy = request.taxonomy.strip().strip("/")
        if not taxonomy:
            raise api_error(ERR_INVALID_REQUEST, "taxonomy must name a taxonomy, not a bare path")
        self.logger.info("Terms request: %s taxonomy=%s", site_url, taxonomy)

        # Validators depend on the taxonomy, so it is part of each entry's identity.
        key_params = {"taxonomy": taxonomy}
        matches_terms = partial(terms_structure, taxonomy=taxonomy)
        resolution = await self._resolve(
            site_url,
            [
                self._candidate(
                    f"/taxonomies/{taxonomy}/index.json", matches_terms, key_params=key_params
                ),
                self._candidate(f"/{taxonomy}/index.json", matches_terms, key_params=key_params),
                self._candidate(
                    f"/api/taxonomies/{taxonomy}.json", matches_terms, key_params=key_params
                ),
                self._candidate(
                    "/index.json",
                    partial(hugo_index_terms, taxonomy=taxonomy),
                    key_params=key_params,
                ),
            ],
        )
        if resolution is None:
            self.logger.info("No terms found for taxonomy %s at %s", taxonomy, site_url)
            raise not_found({"site_url": site_url, "taxonomy": taxonomy})

        terms = extract_terms(resolution.payload, taxonomy)
        response = TermsResponse(
            taxonomy=taxonomy,
            terms=terms,
            metadata=TermsMetadata(
                source_endpoint=resolution.source,
                term_count=len(terms),
                cached=resolution.from_cache,
            ),
        )
        self.logger.info("Retrieved %s terms for %s from %s", len(terms), taxonomy, site_url)
        return response.model_dump()
