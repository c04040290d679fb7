import inspect
import json
import pathlib
import sys
from functools import partial

import pytest

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hugo_reader.cache import ContentCache, build_key
from hugo_reader.resolver import Candidate, Resolver
from hugo_reader.site_client import FetchError, FetchResult
from hugo_reader.validators import (
    has_non_empty_object_field,
    hugo_index_taxonomies,
    is_json_document,
    pages_contain_any_of,
    taxonomy_structure,
)

SITE = "https://example.com"

INDEX_WITH_TAGS = json.dumps({"pages": [{"title": "Post", "tags": ["hugo"]}]}).encode()


class _Origin:
    """Fake site that serves canned responses by path and records every request."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    async def __call__(self, path, params=None, *, etag=None, last_modified=None):
        self.calls.append({"path": path, "params": dict(params or {}), "etag": etag})
        response = self.routes.get(path)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(etag)
            if inspect.isawaitable(response):
                response = await response
            return response
        if response is None:
            return FetchResult(status=404, body=b"not found")
        return response

    def paths(self):
        return [call["path"] for call in self.calls]


class _Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _ok(body: bytes, etag=None) -> FetchResult:
    return FetchResult(status=200, body=body, etag=etag)


def _taxonomy_candidates():
    return [
        Candidate("/taxonomies/index.json", taxonomy_structure),
        Candidate("/index.json", hugo_index_taxonomies),
        Candidate("/api/taxonomies.json", taxonomy_structure),
    ]


@pytest.mark.asyncio
async def test_falls_through_to_index_and_caches_it():
    cache = ContentCache()
    resolver = Resolver(cache)
    origin = _Origin({"/index.json": _ok(INDEX_WITH_TAGS)})

    resolution = await resolver.resolve(SITE, _taxonomy_candidates(), origin)

    assert resolution is not None
    assert resolution.payload == INDEX_WITH_TAGS
    assert resolution.candidate.path == "/index.json"
    assert resolution.source == "https://example.com/index.json"
    assert resolution.from_cache is False
    assert origin.paths() == ["/taxonomies/index.json", "/index.json"]
    assert await cache.get(build_key(SITE, "/index.json")) == INDEX_WITH_TAGS
    # The failed candidate leaves nothing behind.
    assert await cache.get(build_key(SITE, "/taxonomies/index.json")) is None


@pytest.mark.asyncio
async def test_second_resolution_is_served_from_cache():
    cache = ContentCache()
    resolver = Resolver(cache)
    origin = _Origin({"/index.json": _ok(INDEX_WITH_TAGS)})

    first = await resolver.resolve(SITE, _taxonomy_candidates(), origin)
    origin.calls.clear()
    second = await resolver.resolve(SITE, _taxonomy_candidates(), origin)

    assert second.payload == first.payload
    assert second.candidate.path == first.candidate.path
    assert second.from_cache is True
    # The uncached first candidate is retried, the cached one is not.
    assert origin.paths() == ["/taxonomies/index.json"]


@pytest.mark.asyncio
async def test_first_valid_candidate_wins():
    resolver = Resolver(ContentCache())
    origin = _Origin(
        {
            "/a.json": _ok(b'{"taxonomies": {"tags": "tag"}}'),
            "/b.json": _ok(b'{"taxonomies": {"categories": "category"}}'),
        }
    )

    resolution = await resolver.resolve(
        SITE,
        [Candidate("/a.json", taxonomy_structure), Candidate("/b.json", taxonomy_structure)],
        origin,
    )

    assert resolution.candidate.path == "/a.json"
    assert origin.paths() == ["/a.json"]


@pytest.mark.asyncio
async def test_cache_hit_short_circuits_network():
    cache = ContentCache()
    await cache.set(build_key(SITE, "/a.json"), b'{"taxonomies": {"tags": "tag"}}')
    origin = _Origin({})

    resolution = await Resolver(cache).resolve(
        SITE, [Candidate("/a.json", taxonomy_structure)], origin
    )

    assert resolution.from_cache is True
    assert origin.calls == []


@pytest.mark.asyncio
async def test_invalid_cache_hit_is_deleted_and_same_candidate_refetched():
    cache = ContentCache()
    key = build_key(SITE, "/a.json")
    await cache.set(key, b'{"unrelated": true}')
    good = b'{"taxonomies": {"tags": "tag"}}'
    seen_at_fetch = []

    async def refetch(etag):
        seen_at_fetch.append(await cache.peek(key))
        return _ok(good)

    origin = _Origin({"/a.json": refetch})

    resolution = await Resolver(cache).resolve(
        SITE, [Candidate("/a.json", taxonomy_structure)], origin
    )

    assert resolution.payload == good
    assert resolution.from_cache is False
    assert origin.paths() == ["/a.json"]
    # The bad entry was gone before the origin was asked again.
    assert seen_at_fetch == [None]
    assert await cache.get(key) == good


@pytest.mark.asyncio
async def test_invalid_cache_hit_removed_even_when_refetch_fails():
    cache = ContentCache()
    key = build_key(SITE, "/a.json")
    await cache.set(key, b"not json")
    origin = _Origin({"/b.json": _ok(b'{"tags": []}')})

    resolution = await Resolver(cache).resolve(
        SITE,
        [Candidate("/a.json", taxonomy_structure), Candidate("/b.json", taxonomy_structure)],
        origin,
    )

    assert resolution.candidate.path == "/b.json"
    assert await cache.peek(key) is None


@pytest.mark.asyncio
async def test_exhausted_resolution_returns_none_and_caches_nothing():
    cache = ContentCache()
    origin = _Origin(
        {
            "/taxonomies/index.json": _ok(b"<html>not json</html>"),
            "/index.json": FetchResult(status=500, body=b'{"taxonomies": {"tags": "t"}}'),
            "/api/taxonomies.json": FetchError("connection refused"),
        }
    )

    resolution = await Resolver(cache).resolve(SITE, _taxonomy_candidates(), origin)

    assert resolution is None
    assert origin.paths() == ["/taxonomies/index.json", "/index.json", "/api/taxonomies.json"]
    assert (await cache.stats())["total_entries"] == 0


@pytest.mark.asyncio
async def test_transport_error_skips_to_next_candidate():
    origin = _Origin(
        {
            "/a.json": FetchError("timed out"),
            "/b.json": _ok(b"{}"),
        }
    )

    resolution = await Resolver(ContentCache()).resolve(
        SITE,
        [Candidate("/a.json", is_json_document), Candidate("/b.json", is_json_document)],
        origin,
    )

    assert resolution.candidate.path == "/b.json"


@pytest.mark.asyncio
async def test_params_are_sent_and_part_of_cache_key():
    cache = ContentCache()
    origin = _Origin({"/search.json": _ok(b'{"results": []}')})
    candidate = Candidate("/search.json", is_json_document, params={"q": "hugo"})

    await Resolver(cache).resolve(SITE, [candidate], origin)

    assert origin.calls[0]["params"] == {"q": "hugo"}
    assert await cache.get(build_key(SITE, "/search.json", {"q": "hugo"})) is not None
    assert await cache.get(build_key(SITE, "/search.json")) is None


@pytest.mark.asyncio
async def test_key_params_separate_entries_for_context_dependent_validators():
    cache = ContentCache()
    resolver = Resolver(cache)
    body = json.dumps({"pages": [{"title": "Post", "tags": ["hugo"]}]}).encode()
    origin = _Origin({"/index.json": _ok(body)})

    def has_field(payload, field):
        return field in payload.decode()

    tags = Candidate("/index.json", partial(has_field, field="tags"), key_params={"taxonomy": "tags"})
    series = Candidate(
        "/index.json", partial(has_field, field="series"), key_params={"taxonomy": "series"}
    )

    assert await resolver.resolve(SITE, [tags], origin) is not None
    assert await resolver.resolve(SITE, [series], origin) is None
    # The entry cached for "tags" is never consulted, or deleted, for "series".
    assert await cache.get(build_key(SITE, "/index.json", {"taxonomy": "tags"})) == body


@pytest.mark.asyncio
async def test_candidate_ttl_applies_to_written_entry():
    clock = _Clock()
    cache = ContentCache(default_ttl=300, timer=clock)
    origin = _Origin({"/a.json": _ok(b"{}")})

    await Resolver(cache).resolve(SITE, [Candidate("/a.json", is_json_document, ttl=5)], origin)

    entry = await cache.peek(build_key(SITE, "/a.json"))
    assert entry.ttl == 5


@pytest.mark.asyncio
async def test_expired_entry_revalidated_with_etag():
    clock = _Clock()
    cache = ContentCache(default_ttl=10, timer=clock)
    body = b'{"taxonomies": {"tags": "tag"}}'

    def conditional(etag):
        if etag == '"v1"':
            return FetchResult(status=304, body=b"")
        return _ok(body, etag='"v1"')

    origin = _Origin({"/a.json": conditional})
    resolver = Resolver(cache)
    candidates = [Candidate("/a.json", taxonomy_structure)]

    first = await resolver.resolve(SITE, candidates, origin)
    clock.now += 60
    second = await resolver.resolve(SITE, candidates, origin)

    assert first.from_cache is False
    assert second.payload == body
    assert second.from_cache is True
    assert [call["etag"] for call in origin.calls] == [None, '"v1"']
    entry = await cache.peek(build_key(SITE, "/a.json"))
    assert entry.cached_at == clock.now
    assert entry.etag == '"v1"'


@pytest.mark.asyncio
async def test_expired_entry_without_validators_is_refetched_unconditionally():
    clock = _Clock()
    cache = ContentCache(default_ttl=10, timer=clock)
    origin = _Origin({"/a.json": _ok(b"{}")})
    resolver = Resolver(cache)
    candidates = [Candidate("/a.json", is_json_document)]

    await resolver.resolve(SITE, candidates, origin)
    clock.now += 60
    second = await resolver.resolve(SITE, candidates, origin)

    assert second.from_cache is False
    assert [call["etag"] for call in origin.calls] == [None, None]


@pytest.mark.asyncio
async def test_taxonomy_listing_found_in_site_index_then_served_from_cache():
    cache = ContentCache()
    resolver = Resolver(cache)
    index = b'{"pages": [{"categories": ["x"]}]}'
    origin = _Origin({"/index.json": _ok(index)})
    candidates = [
        Candidate("/taxonomies/index.json", has_non_empty_object_field("taxonomies")),
        Candidate("/index.json", pages_contain_any_of(["categories", "tags"])),
    ]

    first = await resolver.resolve(SITE, candidates, origin)

    assert first.candidate.path == "/index.json"
    assert first.payload == index
    assert origin.paths() == ["/taxonomies/index.json", "/index.json"]
    assert await cache.get(build_key(SITE, "/index.json")) == index
    assert await cache.peek(build_key(SITE, "/taxonomies/index.json")) is None

    origin.calls.clear()
    second = await resolver.resolve(SITE, candidates, origin)

    assert second.candidate.path == "/index.json"
    assert second.from_cache is True
    assert origin.paths() == ["/taxonomies/index.json"]


@pytest.mark.asyncio
async def test_resolution_is_deterministic():
    routes = {
        "/a.json": FetchResult(status=404, body=b""),
        "/b.json": _ok(b"<html></html>"),
        "/c.json": _ok(b'{"taxonomies": {"tags": "tag"}}'),
    }
    candidates = [
        Candidate("/a.json", taxonomy_structure),
        Candidate("/b.json", taxonomy_structure),
        Candidate("/c.json", taxonomy_structure),
    ]

    outcomes = []
    for _ in range(3):
        cache = ContentCache()
        # Same starting contents every run: a stale, out-of-shape entry for /b.json
        await cache.set(build_key(SITE, "/b.json"), b'{"other": 1}')
        origin = _Origin(routes)
        resolution = await Resolver(cache).resolve(SITE, candidates, origin)
        outcomes.append((resolution.candidate, resolution.payload, origin.calls))

    assert outcomes[0] == outcomes[1] == outcomes[2]
    assert outcomes[0][0].path == "/c.json"
    assert [call["path"] for call in outcomes[0][2]] == ["/a.json", "/b.json", "/c.json"]


@pytest.mark.asyncio
async def test_too_deeply_nested_payload_fails_validation_and_falls_through():
    deep = b"[" * 200000 + b"]" * 200000
    origin = _Origin({"/a.json": _ok(deep), "/b.json": _ok(b'{"tags": []}')})
    cache = ContentCache()

    resolution = await Resolver(cache).resolve(
        SITE,
        [Candidate("/a.json", taxonomy_structure), Candidate("/b.json", taxonomy_structure)],
        origin,
    )

    assert resolution.candidate.path == "/b.json"
    assert await cache.peek(build_key(SITE, "/a.json")) is None
