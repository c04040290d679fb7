"""Bulk content retrieval backed by the candidate resolver."""

from __future__ import annotations

from typing import Any

from .config_loader import config
from .errors import NO_MATCHING_RESOURCE
from .extractors import extract_content
from .models import ContentMetadata, ContentRequest, ContentResponse
from .resolver import Candidate
from .service_base import SiteQueryService
from .validators import content_structure, hugo_index_content


def clean_content_path(path: str) -> str:
    """Strip surrounding slashes; the site root maps to ``index``."""
    return path.strip().strip("/") or "index"


class ContentService(SiteQueryService):
    """Fetches page content and/or front matter for one or more paths."""

    async def get_content(self, request: ContentRequest) -> dict[str, Any]:
        site_url = self._site_url(request.site_url)
        limit = self._limit(request.limit, config.content_default_limit, config.content_max_limit)
        include = list(request.include) or ["both"]
        self.logger.info("Content request: %s paths=%s", site_url, len(request.paths))

        content: list[dict[str, Any]] = []
        errors: list[str] = []
        for path in request.paths:
            if len(content) >= limit:
                break
            item = await self._content_for_path(site_url, path, include)
            if item is None:
                self.logger.warning("No content found for path %s at %s", path, site_url)
                errors.append(f"Path '{path}': {NO_MATCHING_RESOURCE}")
                continue
            content.append(item)

        response = ContentResponse(
            content=content,
            metadata=ContentMetadata(
                requested_paths=len(request.paths),
                retrieved_count=len(content),
                error_count=len(errors),
                limit_applied=limit,
                include_fields=include,
            ),
            errors=errors,
        )
        self.logger.info(
            "Retrieved content: requested=%s retrieved=%s errors=%s site=%s",
            len(request.paths),
            len(content),
            len(errors),
            site_url,
        )
        return response.model_dump()

    def _candidates(self, path: str) -> list[Candidate]:
        clean = clean_content_path(path)
        return [
            self._candidate(f"/{clean}.json", content_structure),
            self._candidate(f"/{clean}/index.json", content_structure),
            self._candidate(f"/content/{clean}.json", content_structure),
            self._candidate(f"/content/{clean}/index.json", content_structure),
            self._candidate("/index.json", hugo_index_content),
        ]

    async def _content_for_path(
        self, site_url: str, path: str, include: list[str]
    ) -> dict[str, Any] | None:
        resolution = await self._resolve(site_url, self._candidates(path))
        if resolution is None:
            return None
        return extract_content(resolution.payload, path, include, resolution.source)
