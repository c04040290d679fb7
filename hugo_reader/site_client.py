"""Thin HTTP client for fetching resources from Hugo sites."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from functools import partial
from typing import Protocol
from urllib.parse import urljoin

import aiohttp

from .config_loader import config

ACCEPT_HEADER = "application/json, application/xml;q=0.9, text/plain;q=0.8, */*;q=0.5"
READ_CHUNK_BYTES = 64 * 1024


class FetchError(Exception):
    """Transport-level failure (connection error, timeout) fetching one resource."""


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one GET against a site."""

    status: int
    body: bytes
    etag: str | None = None
    last_modified: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def not_modified(self) -> bool:
        return self.status == 304


class Fetcher(Protocol):
    """Fetch capability bound to one site, as consumed by the resolver."""

    def __call__(
        self,
        path: str,
        params: Mapping[str, str] | None = None,
        *,
        etag: str | None = None,
        last_modified: str | None = None,
    ) -> Awaitable[FetchResult]: ...


def normalize_site_url(site_url: str) -> str:
    """Trim the site URL, default the scheme to https and drop trailing slashes."""
    site_url = site_url.strip()
    if "://" not in site_url:
        site_url = f"https://{site_url}"
    return site_url.rstrip("/")


def resource_url(site_url: str, path: str) -> str:
    """
    Resolve an absolute endpoint path against the site's host.

    Leading slashes collapse to one, so a path such as ``//other/x`` stays on
    the site instead of reading as a reference to another host.
    """
    return urljoin(f"{site_url}/", "/" + path.lstrip("/"))


class SiteClient:
    """Encapsulates site HTTP calls so services stay focused on orchestration."""

    def __init__(
        self,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        max_response_bytes: int | None = None,
        logger: logging.Logger | None = None,
    ):
        self.timeout = timeout if timeout is not None else config.http_timeout
        self.user_agent = user_agent or config.user_agent
        self.max_response_bytes = max_response_bytes or config.http_max_response_bytes
        self.logger = logger or logging.getLogger(self.__class__.__module__)

    async def fetch(
        self,
        site_url: str,
        path: str,
        params: Mapping[str, str] | None = None,
        *,
        etag: str | None = None,
        last_modified: str | None = None,
    ) -> FetchResult:
        """
        GET one resource from a site.

        Non-success statuses are returned, not raised; the caller decides what
        counts as usable. Conditional headers are sent when validators are given.

        Raises:
            FetchError: On connection errors, when the bounded timeout expires,
                and when the body exceeds ``max_response_bytes``.
        """
        url = resource_url(site_url, path)
        headers = {"User-Agent": self.user_agent, "Accept": ACCEPT_HEADER}
        if etag:
            headers["If-None-Match"] = etag
        if last_modified:
            headers["If-Modified-Since"] = last_modified

        async with aiohttp.ClientSession() as session:
            try:
                async with session.get(
                    url,
                    params=dict(params or {}),
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    body = await self._read_body(response, url)
                    return FetchResult(
                        status=response.status,
                        body=body,
                        etag=response.headers.get("ETag"),
                        last_modified=response.headers.get("Last-Modified"),
                    )
            except TimeoutError as exc:
                raise FetchError(f"timed out after {self.timeout}s fetching {url}") from exc
            except aiohttp.ClientError as exc:
                raise FetchError(f"cannot fetch {url}: {exc}") from exc

    async def _read_body(self, response: aiohttp.ClientResponse, url: str) -> bytes:
        limit = self.max_response_bytes
        if response.content_length is not None and response.content_length > limit:
            raise FetchError(f"{url} declares {response.content_length} bytes, limit is {limit}")

        body = bytearray()
        async for chunk in response.content.iter_chunked(READ_CHUNK_BYTES):
            body.extend(chunk)
            if len(body) > limit:
                raise FetchError(f"{url} exceeds the {limit} byte response limit")
        return bytes(body)

    def fetcher(self, site_url: str) -> Fetcher:
        """Bind the client to one site for use by the resolver."""
        return partial(self.fetch, site_url)


__all__ = [
    "FetchError",
    "FetchResult",
    "Fetcher",
    "SiteClient",
    "normalize_site_url",
    "resource_url",
]
