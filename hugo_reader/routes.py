"""
FastAPI route handlers for Hugo Reader endpoints.

This module defines the HTTP API layer with thin route handlers that
delegate business logic to service classes. Handles HTTP-specific
concerns like status codes and error responses.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from .config_loader import config
from .models import (
    CacheRequest,
    ContentRequest,
    DiscoveryRequest,
    SearchRequest,
    TaxonomiesRequest,
    TermsRequest,
)
from .services import Services

# Initialize logger for routes
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter()


def get_services(request: Request) -> Services:
    """Services built for the running application."""
    return request.app.state.services


@router.post("/taxonomies")
async def taxonomies(
    request: TaxonomiesRequest, services: Services = Depends(get_services)
) -> dict[str, Any]:
    """
    List the taxonomies a Hugo site defines.

    Args:
        request: TaxonomiesRequest with the site URL

    Returns:
        TaxonomiesResponse dictionary

    Raises:
        HTTPException: When the URL is invalid or no endpoint qualifies
    """
    return await services.taxonomies.get_taxonomies(request)


@router.post("/terms")
async def terms(request: TermsRequest, services: Services = Depends(get_services)) -> dict[str, Any]:
    """
    List the terms of one taxonomy.

    Args:
        request: TermsRequest with the site URL and taxonomy name

    Returns:
        TermsResponse dictionary
    """
    return await services.terms.get_terms(request)


@router.post("/content")
async def content(
    request: ContentRequest, services: Services = Depends(get_services)
) -> dict[str, Any]:
    """
    Retrieve content for one or more paths.

    Paths that cannot be resolved are reported in ``errors`` rather than
    failing the whole request.

    Args:
        request: ContentRequest with paths, include fields and limit

    Returns:
        ContentResponse dictionary
    """
    return await services.content.get_content(request)


@router.post("/search")
async def search(request: SearchRequest, services: Services = Depends(get_services)) -> dict[str, Any]:
    """
    Keyword search across a Hugo site.

    Uses a native search endpoint when the site publishes one, otherwise
    scans the site's JSON index and ranks pages locally.

    Args:
        request: SearchRequest with query, filters and limit

    Returns:
        SearchResponse dictionary
    """
    return await services.search.search(request)


@router.post("/discover")
async def discover(
    request: DiscoveryRequest, services: Services = Depends(get_services)
) -> dict[str, Any]:
    """
    Explore site structure: overview, sections, pages or sitemap.

    Args:
        request: DiscoveryRequest with the discovery type and limit

    Returns:
        DiscoveryResponse dictionary
    """
    return await services.discovery.discover(request)


@router.post("/cache")
async def cache(request: CacheRequest, services: Services = Depends(get_services)) -> dict[str, Any]:
    """Report cache stats, sweep expired entries or clear the cache."""
    return await services.cache_manager.manage(request)


@router.get("/info")
async def info(
    include_runtime: bool = False,
    include_tools: bool = False,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    """
    Version information about the reader.

    Args:
        include_runtime: Add interpreter and host details
        include_tools: Add the list of available endpoints

    Returns:
        InfoResponse dictionary
    """
    return services.info.info(include_runtime=include_runtime, include_tools=include_tools)


@router.get("/health")
async def health() -> dict[str, str]:
    """
    Health check endpoint.

    Simple endpoint to verify service is running and responsive.

    Returns:
        Dictionary with status and service name
    """
    return {"status": "ok", "service": config.server_name}


@router.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt() -> str:
    """
    Robots exclusion file route.

    Returns a static robots.txt that tells crawlers to skip all paths.

    Returns:
        Simple string with robots directives
    """
    return "User-agent: *\nDisallow: /"
