"""
Pydantic models for Hugo Reader API requests and responses.

This module contains all data models used by the FastAPI endpoints,
including request/response schemas for every query operation.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

IncludeField = Literal["metadata", "body", "both"]
DiscoveryType = Literal["overview", "sections", "pages", "sitemap"]
CacheAction = Literal["clear", "stats", "clean"]


class SiteRequest(BaseModel):
    """
    Base request for operations against one Hugo site.

    Attributes:
        site_url: Site root, e.g. ``https://example.com``; https is assumed
            when no scheme is given
    """

    site_url: str = Field(min_length=1)


class TaxonomiesRequest(SiteRequest):
    pass


class TermsRequest(SiteRequest):
    """
    Request model for the terms endpoint.

    Attributes:
        taxonomy: Taxonomy name such as ``tags`` or ``categories``
    """

    taxonomy: str = Field(min_length=1)


class ContentRequest(SiteRequest):
    """
    Request model for the content endpoint.

    Attributes:
        paths: Content paths, with or without leading/trailing slashes
        include: Which parts to return - metadata, body or both (default)
        limit: Maximum number of items to retrieve (uses config default)
    """

    paths: list[str] = Field(min_length=1)
    include: list[IncludeField] = Field(default_factory=lambda: ["both"])
    limit: int | None = None


class SearchRequest(SiteRequest):
    """
    Request model for the search endpoint.

    Attributes:
        query: Keywords to look for
        content_type: Only return pages of this Hugo content type
        taxonomy: Taxonomy to filter on (used together with ``term``)
        term: Term the taxonomy must contain
        limit: Maximum number of results (uses config default)
    """

    query: str = Field(min_length=1)
    content_type: str | None = None
    taxonomy: str | None = None
    term: str | None = None
    limit: int | None = None


class DiscoveryRequest(SiteRequest):
    discovery_type: DiscoveryType = "overview"
    limit: int | None = None


class CacheRequest(BaseModel):
    """
    Request model for the cache management endpoint.

    Attributes:
        action: ``clear`` all entries, report ``stats`` or ``clean`` expired ones
        target: Optional site URL, echoed back when clearing
    """

    action: CacheAction
    target: str | None = None


class TaxonomiesMetadata(BaseModel):
    source_endpoint: str
    taxonomy_count: int
    cached: bool


class TaxonomiesResponse(BaseModel):
    success: bool = True
    taxonomies: dict[str, str]
    metadata: TaxonomiesMetadata
    errors: list[str] = Field(default_factory=list)


class TermsMetadata(BaseModel):
    source_endpoint: str
    term_count: int
    cached: bool


class TermsResponse(BaseModel):
    success: bool = True
    taxonomy: str
    terms: list[str]
    metadata: TermsMetadata
    errors: list[str] = Field(default_factory=list)


class ContentMetadata(BaseModel):
    requested_paths: int
    retrieved_count: int
    error_count: int
    limit_applied: int
    include_fields: list[str]


class ContentResponse(BaseModel):
    success: bool = True
    content: list[dict[str, Any]]
    metadata: ContentMetadata
    errors: list[str] = Field(default_factory=list)


class SearchMetadata(BaseModel):
    search_method: Literal["hugo_native", "content_scan"]
    source_endpoint: str
    result_count: int
    cached: bool
    fallback_used: bool
    limited: bool


class SearchResponse(BaseModel):
    success: bool = True
    query: str
    results: list[dict[str, Any]]
    metadata: SearchMetadata
    errors: list[str] = Field(default_factory=list)


class DiscoveryResponse(BaseModel):
    success: bool = True
    discovery_type: DiscoveryType
    results: list[dict[str, Any]]
    metadata: dict[str, Any]
    errors: list[str] = Field(default_factory=list)


class CacheStats(BaseModel):
    total_entries: int
    expired_entries: int
    total_size: int
    default_ttl: float


class CacheResponse(BaseModel):
    success: bool = True
    action: str
    message: str | None = None
    target: str | None = None
    stats: CacheStats | None = None
    cleaned_entries: int | None = None


class InfoResponse(BaseModel):
    name: str
    server_name: str
    version: str
    description: str
    runtime: dict[str, Any] | None = None
    tools: list[dict[str, str]] | None = None


__all__ = [
    "CacheRequest",
    "CacheResponse",
    "CacheStats",
    "ContentMetadata",
    "ContentRequest",
    "ContentResponse",
    "DiscoveryRequest",
    "DiscoveryResponse",
    "InfoResponse",
    "SearchMetadata",
    "SearchRequest",
    "SearchResponse",
    "SiteRequest",
    "TaxonomiesMetadata",
    "TaxonomiesRequest",
    "TaxonomiesResponse",
    "TermsMetadata",
    "TermsRequest",
    "TermsResponse",
]
