"""
Pure extraction helpers.

These functions turn an already validated payload into the result shape of a
query operation. They never perform I/O or touch the cache, so they can run
on cached and fresh payloads alike without changing which candidate won.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from .validators import COMMON_TAXONOMIES, load_json

SNIPPET_LENGTH = 200

METADATA_FIELDS = (
    "title",
    "date",
    "slug",
    "url",
    "summary",
    "tags",
    "categories",
    "author",
    "description",
    "draft",
    "publishDate",
)
BODY_FIELDS = ("content", "body", "html", "summary")
HIT_TEXT_FIELDS = ("title", "url", "content", "summary", "date")


def as_text(value: Any) -> str:
    """Render a JSON value as text: strings as-is, null as empty, the rest as JSON."""
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value)


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _items(document: Any) -> list[Any]:
    """Page-like items of an index document: its ``pages`` array or a bare array."""
    if isinstance(document, dict) and isinstance(document.get("pages"), list):
        return document["pages"]
    if isinstance(document, list):
        return document
    return []


# ---------------------------------------------------------------------------
# Taxonomies and terms
# ---------------------------------------------------------------------------


def extract_taxonomies(payload: bytes) -> dict[str, str]:
    """
    Collect taxonomy names from a validated payload.

    Looks for a ``taxonomies`` object first, then well-known taxonomy keys and
    ``*_taxonomy``/``*_tax`` keys at the root, then taxonomy keys used by pages.
    """
    document = load_json(payload)
    if not isinstance(document, dict):
        return {}

    taxonomies = document.get("taxonomies")
    if isinstance(taxonomies, dict):
        return {str(name): as_text(value) for name, value in taxonomies.items()}

    found: dict[str, str] = {}
    for name in (*COMMON_TAXONOMIES, "types"):
        if name in document:
            found[name] = name
    for key in document:
        if key.endswith("_taxonomy") or key.endswith("_tax"):
            base = key.removesuffix("_taxonomy").removesuffix("_tax")
            found[base] = base

    if not found:
        for page in _items(document):
            if not isinstance(page, dict):
                continue
            for name in COMMON_TAXONOMIES:
                if name in page:
                    found[name] = name
            if isinstance(page.get("taxonomies"), dict):
                for name in page["taxonomies"]:
                    found[str(name)] = str(name)
    return found


def extract_terms(payload: bytes, taxonomy: str) -> list[str]:
    document = load_json(payload)
    if not isinstance(document, dict):
        return []

    terms = document.get("terms")
    if terms is not None:
        if isinstance(terms, list):
            return [as_text(term) for term in terms]
        if isinstance(terms, dict):
            return [str(term) for term in terms]
        return []

    values = document.get(taxonomy)
    if values is not None:
        if isinstance(values, dict):
            return [str(term) for term in values]
        if isinstance(values, list):
            names = []
            for value in values:
                if isinstance(value, str):
                    names.append(value)
                elif isinstance(value, dict):
                    name = value.get("name", value.get("title"))
                    if name is not None:
                        names.append(as_text(name))
            return names
        return []

    taxonomies = document.get("taxonomies")
    if isinstance(taxonomies, list):
        return [
            as_text(item["name"]) for item in taxonomies if isinstance(item, dict) and "name" in item
        ]

    # Terms used across pages, de-duplicated
    collected: set[str] = set()
    for page in _items(document):
        if not isinstance(page, dict) or taxonomy not in page:
            continue
        value = page[taxonomy]
        if isinstance(value, list):
            collected.update(as_text(term) for term in value)
        elif isinstance(value, str):
            collected.add(value)
    return sorted(collected)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


def _matches_path(candidate: Any, requested_path: str) -> bool:
    value = as_text(candidate)
    if not value:
        return False
    return value in requested_path or requested_path in value


def extract_content(
    payload: bytes,
    requested_path: str,
    include: list[str],
    source_endpoint: str,
) -> dict[str, Any]:
    """
    Build the content record for one requested path.

    When the payload is a site index, the page whose ``url`` or ``slug``
    matches the requested path is used; otherwise the document itself.

    Args:
        payload: Validated content or index payload.
        requested_path: Path exactly as the caller asked for it.
        include: Any of ``metadata``, ``body``, ``both``.
        source_endpoint: URL the payload came from.
    """
    document = load_json(payload)
    if not isinstance(document, dict):
        document = {}

    pages = document.get("pages")
    if isinstance(pages, list):
        for page in pages:
            if not isinstance(page, dict):
                continue
            if ("url" in page and _matches_path(page["url"], requested_path)) or (
                "slug" in page and _matches_path(page["slug"], requested_path)
            ):
                document = page
                break

    content: dict[str, Any] = {"path": requested_path, "source_endpoint": source_endpoint}

    if "metadata" in include or "both" in include:
        metadata = {field: document[field] for field in METADATA_FIELDS if field in document}
        # Custom front matter rides along; raw bodies stay out of metadata
        for key, value in document.items():
            if key not in ("content", "body", "html") and key not in metadata:
                metadata[key] = value
        content["metadata"] = metadata

    if "body" in include or "both" in include:
        content["body"] = {
            field: as_text(document[field]) for field in BODY_FIELDS if field in document
        }

    return content


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def _hit(item: dict[str, Any]) -> dict[str, Any]:
    hit: dict[str, Any] = {
        field: as_text(item[field]) for field in HIT_TEXT_FIELDS if field in item
    }
    for field in ("categories", "tags"):
        if field in item:
            hit[field] = item[field]
    return hit


def extract_search_hits(payload: bytes) -> list[dict[str, Any]]:
    """Map a native search response (``results``, ``hits`` or bare array) to hits."""
    document = load_json(payload)
    if isinstance(document, dict) and isinstance(document.get("results"), list):
        items = document["results"]
    elif isinstance(document, dict) and isinstance(document.get("hits"), list):
        items = document["hits"]
    elif isinstance(document, list):
        items = document
    else:
        return []

    hits = []
    for item in items:
        if not isinstance(item, dict):
            continue
        hit = _hit(item)
        if "score" in item:
            hit["score"] = _as_float(item["score"])
        hits.append(hit)
    return hits


def _has_term(value: Any, term: str) -> bool:
    values = value if isinstance(value, list) else [value]
    return any(as_text(v).casefold() == term.casefold() for v in values)


def rank_pages(
    payload: bytes,
    query: str,
    *,
    content_type: str | None = None,
    taxonomy: str | None = None,
    term: str | None = None,
) -> list[dict[str, Any]]:
    """
    Keyword search over an index of pages, ranked by relevance.

    Scoring: a title containing the query scores 10 (30 on an exact match);
    each of content, body and summary containing it scores 1 plus the number
    of occurrences. Matches are then filtered by content type and taxonomy
    term, and returned highest score first.
    """
    needle = query.casefold()
    if not needle:
        return []

    document = load_json(payload)
    items = _items(document)
    if not items and isinstance(document, dict):
        for field in ("results", "hits"):
            if isinstance(document.get(field), list):
                items = document[field]
                break

    hits = []
    for item in items:
        if not isinstance(item, dict):
            continue

        matched = False
        score = 0.0
        if "title" in item:
            title = as_text(item["title"]).casefold()
            if needle in title:
                matched = True
                score += 10.0
                if title == needle:
                    score += 20.0
        for field in ("content", "body", "summary"):
            if field in item:
                text = as_text(item[field]).casefold()
                if needle in text:
                    matched = True
                    score += 1.0 + text.count(needle)
        if not matched:
            continue

        if content_type and "type" in item:
            if as_text(item["type"]).casefold() != content_type.casefold():
                continue
        if taxonomy and term:
            if taxonomy not in item or not _has_term(item[taxonomy], term):
                continue

        hit = _hit(item)
        if len(hit.get("content", "")) > SNIPPET_LENGTH:
            hit["content"] = hit["content"][:SNIPPET_LENGTH] + "..."
        hit["score"] = score
        hits.append(hit)

    return sorted(hits, key=lambda hit: hit["score"], reverse=True)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def summarize_index(payload: bytes, endpoint: str, url: str) -> dict[str, Any]:
    summary: dict[str, Any] = {"endpoint": endpoint, "type": "json", "url": url}
    document = load_json(payload)
    if isinstance(document, dict):
        if isinstance(document.get("pages"), list):
            summary["pages_count"] = len(document["pages"])
        if "sections" in document:
            summary["sections"] = document["sections"]
        if "taxonomies" in document:
            summary["taxonomies"] = document["taxonomies"]
    return summary


def _first_segment(url: str) -> str:
    path = urlsplit(url).path if "://" in url else url
    return path.strip("/").split("/")[0]


def count_sections(payload: bytes) -> dict[str, int]:
    """Pages per section, from the page's ``section`` field or its first URL segment."""
    counts: dict[str, int] = {}
    for page in _items(load_json(payload)):
        if not isinstance(page, dict):
            continue
        section = as_text(page.get("section")) or _first_segment(as_text(page.get("url")))
        if section:
            counts[section] = counts.get(section, 0) + 1
    return counts


def extract_sections(payload: bytes, limit: int) -> list[dict[str, Any]]:
    counts = count_sections(payload)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        {"section": section, "count": count, "example_path": f"/{section}/"}
        for section, count in ordered[:limit]
    ]


def extract_pages(payload: bytes, limit: int) -> list[dict[str, Any]]:
    pages = []
    for page in _items(load_json(payload)):
        if len(pages) >= limit:
            break
        if not isinstance(page, dict):
            continue
        record: dict[str, Any] = {}
        if "title" in page:
            record["title"] = as_text(page["title"])
        if "url" in page:
            record["url"] = as_text(page["url"])
            record["path"] = record["url"]
        for field in ("date", "section"):
            if field in page:
                record[field] = as_text(page[field])
        pages.append(record)
    return pages


def extract_sitemap(payload: bytes, site_url: str, limit: int) -> list[dict[str, Any]]:
    """Absolute ``<loc>`` URLs from a sitemap, each with its path relative to the site."""
    soup = BeautifulSoup(payload, "html.parser")
    entries = []
    for loc in soup.find_all("loc"):
        if len(entries) >= limit:
            break
        url = loc.get_text(strip=True)
        if not url.startswith("http"):
            continue
        path = url.removeprefix(site_url) if url.startswith(site_url) else urlsplit(url).path
        entries.append({"url": url, "path": path or "/", "source": "sitemap.xml"})
    return entries


__all__ = [
    "as_text",
    "count_sections",
    "extract_content",
    "extract_pages",
    "extract_search_hits",
    "extract_sections",
    "extract_sitemap",
    "extract_taxonomies",
    "extract_terms",
    "rank_pages",
    "summarize_index",
]
