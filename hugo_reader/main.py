"""
FastAPI application entry point for Hugo Reader.

This is the main application file that initializes the FastAPI app,
configures logging, and registers routes. The actual business logic
is implemented in separate modules (services, resolver, cache).
"""
import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from . import __version__
from .cache import ContentCache
from .config_loader import config
from .routes import router
from .service_base import SiteFetcherFactory
from .services import build_services

# Configure logging for the application
logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """
    FastAPI lifespan handler.

    Logs the effective configuration on startup and empties the response
    cache on shutdown.
    """
    logger.info("Starting Hugo Reader (%s)", config.server_name)
    logger.info(f"HTTP timeout: {config.http_timeout}s, cache TTL: {config.cache_default_ttl}s")
    logger.info(f"Server: {config.server_host}:{config.server_port}")
    try:
        yield
    finally:
        await app.state.services.cache.clear()
        logger.info("Shutting down Hugo Reader")


async def add_noindex_header(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """
    Middleware that adds X-Robots-Tag header to every response.

    This discourages search engines and other automated indexers from storing
    our responses.
    """
    response = await call_next(request)
    response.headers["X-Robots-Tag"] = "noindex, nofollow"
    return response


def create_app(
    client: SiteFetcherFactory | None = None,
    cache: ContentCache | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        client: Site fetch capability; a configured aiohttp client by default
        cache: Response cache shared by every operation

    Returns:
        Configured FastAPI application
    """
    application = FastAPI(
        title="Hugo Reader",
        version=__version__,
        description="Read-only query API for statically generated Hugo sites",
        lifespan=app_lifespan,
    )
    application.state.services = build_services(client=client, cache=cache)

    # Register routes
    application.include_router(router)
    application.middleware("http")(add_noindex_header)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level,
    )
