import json
import pathlib
import sys

from fastapi.testclient import TestClient

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hugo_reader import __version__
from hugo_reader.cache import ContentCache
from hugo_reader.main import create_app
from hugo_reader.site_client import FetchResult

INDEX = json.dumps(
    {"pages": [{"title": "Hello Hugo", "url": "/posts/hello/", "tags": ["hugo"], "content": "Hi"}]}
).encode()


class _StubSiteClient:
    def __init__(self, routes):
        self.routes = routes

    def fetcher(self, site_url):
        async def fetch(path, params=None, *, etag=None, last_modified=None):
            body = self.routes.get(path)
            if body is None:
                return FetchResult(status=404, body=b"")
            return FetchResult(status=200, body=body)

        return fetch


def _client(routes=None) -> TestClient:
    app = create_app(client=_StubSiteClient(routes or {}), cache=ContentCache())
    return TestClient(app)


def test_health_and_noindex_header():
    response = _client().get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Robots-Tag"] == "noindex, nofollow"


def test_robots_txt():
    response = _client().get("/robots.txt")

    assert response.status_code == 200
    assert response.text == "User-agent: *\nDisallow: /"


def test_taxonomies_endpoint():
    response = _client({"/index.json": INDEX}).post(
        "/taxonomies", json={"site_url": "https://example.com"}
    )

    assert response.status_code == 200
    assert response.json()["taxonomies"] == {"tags": "tags"}


def test_unresolvable_request_returns_structured_404():
    response = _client().post("/terms", json={"site_url": "https://example.com", "taxonomy": "tags"})

    assert response.status_code == 404
    error = response.json()["detail"]["errors"][0]
    assert error["code"] == "NOT_FOUND"
    assert error["message"] == "No matching resource found for this request."
    assert "paths" not in json.dumps(error["context"])


def test_request_validation_error():
    response = _client().post("/content", json={"site_url": "https://example.com", "paths": []})

    assert response.status_code == 422


def test_search_endpoint():
    response = _client({"/index.json": INDEX}).post(
        "/search", json={"site_url": "https://example.com", "query": "hugo"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["results"][0]["title"] == "Hello Hugo"
    assert body["metadata"]["search_method"] == "hugo_native"


def test_discover_endpoint():
    response = _client({"/index.json": INDEX}).post(
        "/discover", json={"site_url": "https://example.com", "discovery_type": "pages"}
    )

    assert response.status_code == 200
    assert response.json()["results"][0]["path"] == "/posts/hello/"


def test_cache_endpoint_reports_entries_written_by_queries():
    client = _client({"/index.json": INDEX})
    client.post("/taxonomies", json={"site_url": "https://example.com"})

    response = client.post("/cache", json={"action": "stats"})

    assert response.status_code == 200
    assert response.json()["stats"]["total_entries"] == 1

    cleared = client.post("/cache", json={"action": "clear"}).json()
    assert cleared["action"] == "clear_all"
    assert client.post("/cache", json={"action": "stats"}).json()["stats"]["total_entries"] == 0


def test_info_endpoint():
    response = _client().get("/info", params={"include_tools": "true"})

    body = response.json()
    assert body["version"] == __version__
    assert body["runtime"] is None
    assert any(tool["endpoint"] == "POST /search" for tool in body["tools"])
