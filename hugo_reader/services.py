"""Service wiring.

Re-exports the focused service implementations and bundles them around one
shared cache, resolver and site client so the API layer can reach them from
application state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .cache import ContentCache
from .cache_manager_service import CacheManagerService
from .config_loader import config
from .content_service import ContentService
from .discovery_service import DiscoveryService
from .info_service import InfoService
from .resolver import Resolver
from .search_service import SearchService
from .service_base import SiteFetcherFactory
from .site_client import SiteClient
from .taxonomy_service import TaxonomyService
from .terms_service import TermsService


@dataclass
class Services:
    cache: ContentCache
    taxonomies: TaxonomyService
    terms: TermsService
    content: ContentService
    search: SearchService
    discovery: DiscoveryService
    cache_manager: CacheManagerService
    info: InfoService


def build_services(
    client: SiteFetcherFactory | None = None,
    cache: ContentCache | None = None,
    logger: logging.Logger | None = None,
) -> Services:
    """
    Build every query service around a single cache and resolver.

    Args:
        client: Fetch capability factory; a configured SiteClient by default
        cache: Response cache; sized and timed from configuration by default
        logger: Optional logger shared by all services

    Returns:
        Services bundle
    """
    if cache is None:
        cache = ContentCache(
            default_ttl=config.cache_default_ttl,
            max_bytes=config.cache_max_bytes,
        )
    if client is None:
        client = SiteClient()
    resolver = Resolver(cache)

    return Services(
        cache=cache,
        taxonomies=TaxonomyService(resolver, client, logger=logger),
        terms=TermsService(resolver, client, logger=logger),
        content=ContentService(resolver, client, logger=logger),
        search=SearchService(resolver, client, logger=logger),
        discovery=DiscoveryService(resolver, client, logger=logger),
        cache_manager=CacheManagerService(cache, logger=logger),
        info=InfoService(logger=logger),
    )


__all__ = [
    "CacheManagerService",
    "ContentService",
    "DiscoveryService",
    "InfoService",
    "SearchService",
    "Services",
    "TaxonomyService",
    "TermsService",
    "build_services",
]
