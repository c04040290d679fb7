"""
Hugo Reader package.

A FastAPI application that reads taxonomies, terms, content, search results
and site structure from statically generated Hugo sites, backed by a
validated response cache.
"""
__version__ = "1.0.0"

from .main import app, create_app  # noqa: E402

__all__ = ["app", "create_app"]
