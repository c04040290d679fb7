"""Version, runtime and tool listing for the reader itself."""

from __future__ import annotations

import asyncio
import os
import platform
from typing import Any

from . import __version__
from .config_loader import config
from .models import InfoResponse
from .service_base import BaseService

TOOLS = (
    {
        "name": "taxonomies",
        "endpoint": "POST /taxonomies",
        "description": "Get all taxonomies defined in a Hugo site",
    },
    {
        "name": "terms",
        "endpoint": "POST /terms",
        "description": "Get all terms for a specific taxonomy",
    },
    {
        "name": "content",
        "endpoint": "POST /content",
        "description": "Get content from Hugo sites by path",
    },
    {
        "name": "search",
        "endpoint": "POST /search",
        "description": "Search content across Hugo sites",
    },
    {
        "name": "discover",
        "endpoint": "POST /discover",
        "description": "Discover available content and structure",
    },
    {
        "name": "cache",
        "endpoint": "POST /cache",
        "description": "Inspect, sweep or clear the response cache",
    },
    {
        "name": "info",
        "endpoint": "GET /info",
        "description": "Get version and runtime information",
    },
)


class InfoService(BaseService):
    def info(self, *, include_runtime: bool = False, include_tools: bool = False) -> dict[str, Any]:
        response = InfoResponse(
            name="Hugo Reader",
            server_name=config.server_name,
            version=__version__,
            description="Read-only query API for statically generated Hugo sites",
        )
        if include_runtime:
            response.runtime = {
                "python_version": platform.python_version(),
                "implementation": platform.python_implementation(),
                "os": platform.system(),
                "arch": platform.machine(),
                "num_cpu": os.cpu_count(),
                "num_tasks": _task_count(),
            }
        if include_tools:
            response.tools = [dict(tool) for tool in TOOLS]
        return response.model_dump()


def _task_count() -> int:
    try:
        return len(asyncio.all_tasks())
    except RuntimeError:
        # Called outside a running event loop
        return 0
