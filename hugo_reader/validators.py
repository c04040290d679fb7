"""
Payload validators for the shapes Hugo sites commonly publish.

Every validator takes the raw response body and returns a bool. Malformed
input (not JSON, wrong top-level type) simply fails validation. Validators
that need call context, such as the taxonomy name, take it as a second
argument and are bound with functools.partial before being handed to the
resolver.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import Any

Validator = Callable[[bytes], bool]

# Sentinel for bodies that are not JSON at all (JSON null is a valid document).
MALFORMED = object()

COMMON_TAXONOMIES = ("categories", "tags", "series", "authors", "topics")
CONTENT_FIELDS = ("title", "content", "body", "summary", "date", "slug", "url")


def load_json(payload: bytes) -> Any:
    """Decode a JSON body, returning MALFORMED instead of raising."""
    try:
        return json.loads(payload)
    except (ValueError, RecursionError):
        # Undecodable or nested deeper than the interpreter can parse
        return MALFORMED


def _pages(document: Any) -> list[Any] | None:
    if isinstance(document, dict) and isinstance(document.get("pages"), list):
        return document["pages"]
    return None


def _any_page_has(pages: list[Any], fields: Iterable[str]) -> bool:
    fields = tuple(fields)
    return any(isinstance(page, dict) and any(f in page for f in fields) for page in pages)


# ---------------------------------------------------------------------------
# Generic building blocks
# ---------------------------------------------------------------------------


def has_non_empty_object_field(field: str) -> Validator:
    """Accept documents whose ``field`` is a non-empty JSON object."""

    def validate(payload: bytes) -> bool:
        document = load_json(payload)
        return (
            isinstance(document, dict)
            and isinstance(document.get(field), dict)
            and len(document[field]) > 0
        )

    return validate


def has_array_field(field: str) -> Validator:
    def validate(payload: bytes) -> bool:
        document = load_json(payload)
        return isinstance(document, dict) and isinstance(document.get(field), list)

    return validate


def pages_contain_any_of(fields: Iterable[str]) -> Validator:
    """Accept documents with a ``pages`` array where some page carries one of ``fields``."""
    fields = tuple(fields)

    def validate(payload: bytes) -> bool:
        pages = _pages(load_json(payload))
        return pages is not None and _any_page_has(pages, fields)

    return validate


def is_json_document(payload: bytes) -> bool:
    return isinstance(load_json(payload), (dict, list))


def is_sitemap(payload: bytes) -> bool:
    text = payload.decode("utf-8", errors="replace")
    return "<urlset" in text or "<sitemapindex" in text


def accept_any(payload: bytes) -> bool:
    """Any successful response counts; used for plain availability checks."""
    return True


# ---------------------------------------------------------------------------
# Taxonomies
# ---------------------------------------------------------------------------


def taxonomy_structure(payload: bytes) -> bool:
    """A non-empty ``taxonomies`` object, or a well-known taxonomy key at the root."""
    document = load_json(payload)
    if not isinstance(document, dict):
        return False
    taxonomies = document.get("taxonomies")
    if isinstance(taxonomies, dict):
        return len(taxonomies) > 0
    return any(name in document for name in COMMON_TAXONOMIES)


def hugo_index_taxonomies(payload: bytes) -> bool:
    """A site index whose pages carry taxonomy data; otherwise a taxonomy structure."""
    pages = _pages(load_json(payload))
    if pages is not None:
        return _any_page_has(pages, ("taxonomies", "categories", "tags"))
    return taxonomy_structure(payload)


# Per-taxonomy list pages (/tags/index.json ...) publish a taxonomies array.
taxonomy_listing = has_array_field("taxonomies")


# ---------------------------------------------------------------------------
# Terms
# ---------------------------------------------------------------------------


def terms_structure(payload: bytes, taxonomy: str) -> bool:
    document = load_json(payload)
    if not isinstance(document, dict):
        return False

    if "terms" in document:
        return isinstance(document["terms"], (list, dict))
    if taxonomy in document:
        return isinstance(document[taxonomy], (list, dict))

    # Hugo-style list of {name, count, url} objects
    taxonomies = document.get("taxonomies")
    if isinstance(taxonomies, list) and taxonomies:
        first = taxonomies[0]
        return isinstance(first, dict) and "name" in first and ("count" in first or "url" in first)

    pages = _pages(document)
    if pages is not None:
        return _any_page_has(pages, (taxonomy,))
    return False


def hugo_index_terms(payload: bytes, taxonomy: str) -> bool:
    document = load_json(payload)
    pages = _pages(document)
    if pages is not None:
        return _any_page_has(pages, (taxonomy,))
    return isinstance(document, dict) and taxonomy in document


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


def content_structure(payload: bytes) -> bool:
    """At least two typical front matter/content fields at the root."""
    document = load_json(payload)
    if not isinstance(document, dict):
        return False
    return sum(1 for field in CONTENT_FIELDS if field in document) >= 2


def hugo_index_content(payload: bytes) -> bool:
    pages = _pages(load_json(payload))
    if pages is not None:
        return _any_page_has(pages, ("content", "body", "summary"))
    return content_structure(payload)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def search_results(payload: bytes) -> bool:
    """A ``results`` or ``hits`` array, or a bare top-level array."""
    document = load_json(payload)
    if isinstance(document, list):
        return True
    if not isinstance(document, dict):
        return False
    return isinstance(document.get("results"), list) or isinstance(document.get("hits"), list)


def hugo_index_search(payload: bytes) -> bool:
    document = load_json(payload)
    pages = _pages(document)
    if pages is not None:
        return len(pages) > 0
    return isinstance(document, list) and len(document) > 0


__all__ = [
    "COMMON_TAXONOMIES",
    "MALFORMED",
    "Validator",
    "accept_any",
    "content_structure",
    "has_array_field",
    "has_non_empty_object_field",
    "hugo_index_content",
    "hugo_index_search",
    "hugo_index_taxonomies",
    "hugo_index_terms",
    "is_json_document",
    "is_sitemap",
    "load_json",
    "pages_contain_any_of",
    "search_results",
    "taxonomy_listing",
    "taxonomy_structure",
    "terms_structure",
]
