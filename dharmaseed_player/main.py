"""Dharma Seed catalog FastAPI application entry point.

Wires the upstream transport, expiring cache, teacher directory and catalog
service together and exposes them through the API router.  Configuration
comes from ``config/config.yaml`` overlaid with ``.env`` / environment
variables; logging is configured once at import.

The cache and the teacher directory are process-wide: they are created in
the lifespan, live on ``app.state`` and are only reset by a restart.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from dharmaseed_player import __version__
from dharmaseed_player.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from dharmaseed_player.api.routes import router as api_router
from dharmaseed_player.config.loader import load_config
from dharmaseed_player.config.settings import Settings
from dharmaseed_player.providers.cache.memory_cache import ExpiringMemoryCache
from dharmaseed_player.providers.upstream.dharmaseed_client import DharmaSeedClient
from dharmaseed_player.services.catalog_service import CatalogService
from dharmaseed_player.services.teacher_directory import TeacherDirectory
from dharmaseed_player.utils.logging import configure_logging, get_logger

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=config["logging"]["level"],
    json_output=(config["app"]["env"] == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


def build_catalog(app_config: dict[str, Any], http_client: httpx.AsyncClient) -> dict[str, Any]:
    """Construct the catalog components around a shared HTTP client.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    upstream = app_config["upstream"]
    teachers = app_config["teachers"]

    client = DharmaSeedClient(
        http_client=http_client,
        base_url=upstream["base_url"],
        feed_base_url=upstream["feed_base_url"],
        user_agent=upstream["user_agent"],
    )
    cache = ExpiringMemoryCache(default_ttl=app_config["cache"]["ttl_seconds"])
    directory = TeacherDirectory(
        client=client,
        batch_size=teachers["batch_size"],
        search_limit=teachers["search_limit"],
    )
    catalog = CatalogService(
        client=client,
        cache=cache,
        directory=directory,
        page_items=upstream["page_items"],
        detail_ttl=app_config["cache"]["ttl_seconds"],
    )
    return {
        "http_client": http_client,
        "cache": cache,
        "teacher_directory": directory,
        "catalog": catalog,
    }


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Create the shared client and singletons on startup, close on shutdown."""
    http_client = httpx.AsyncClient(timeout=config["upstream"]["timeout"])
    components = build_catalog(config, http_client)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=config["app"]["env"],
        upstream=config["upstream"]["base_url"],
    )

    yield

    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Dharma Seed Player API",
        version=__version__,
        description=(
            "Normalized talk, teacher and retreat catalog over dharmaseed.org: "
            "search listings, retreat feeds and cached talk details."
        ),
        lifespan=_lifespan,
    )

    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "dharmaseed_player.main:app",
        host=config["app"]["host"],
        port=config["app"]["port"],
        reload=(config["app"]["env"] == "development"),
    )
