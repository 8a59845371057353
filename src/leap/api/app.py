"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from xml.sax.saxutils import escape

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from leap import __version__
from leap.api.v1.router import router as v1_router
from leap.config.settings import Settings
from leap.core.engine import LeapEngine
from leap.observability.logging import setup_logging

logger = logging.getLogger(__name__)

OPENSEARCH_MEDIA_TYPE = "application/opensearchdescription+xml"

_OPENSEARCH_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<OpenSearchDescription xmlns="http://a9.com/-/spec/opensearch/1.1/">
  <ShortName>{name}</ShortName>
  <Description>{name} bookmark search</Description>
  <InputEncoding>UTF-8</InputEncoding>
  <Url type="text/html" method="get" template="{base}/v1/search?q={{searchTerms}}"/>
  <Url type="application/x-suggestions+json" method="get" template="{base}/v1/suggest?q={{searchTerms}}"/>
</OpenSearchDescription>
"""


def create_app(settings: Settings | None = None, engine: LeapEngine | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from
            ``leap-config.yaml`` when present, otherwise from the environment.
        engine: Pre-built engine, e.g. one wired to a test store. If None,
            one is built from ``settings`` at startup.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        # Auto-detect leap-config.yaml if present
        yaml_path = Path("leap-config.yaml")
        if yaml_path.exists():
            logger.info("Loading configuration from %s", yaml_path)
            settings = Settings.from_yaml(yaml_path)
        else:
            settings = Settings()

    setup_logging(settings.observability)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        logger.info("Starting Leap v%s", __version__)

        leap_engine = engine or LeapEngine(settings)
        await leap_engine.initialize()

        app.state.settings = settings
        app.state.engine = leap_engine

        logger.info("Leap is ready to serve requests on port %d", settings.server.port)
        yield

        logger.info("Shutting down Leap...")
        await leap_engine.shutdown()
        app.state.engine = None
        logger.info("Leap shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Bookmark launcher — ranked full-text lookup over a catalog of "
            "named links, with instant redirect on a unique match."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def bind_request_id(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Tag every log line emitted while serving a request with its id."""
        request_id = request.headers.get("X-Request-ID") or f"req_{uuid.uuid4().hex[:12]}"
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(v1_router, prefix="/v1")

    # ── Browser integration ───────────────────────────────────────────────
    @app.get("/opensearch.xml", include_in_schema=False)
    async def opensearch_description(request: Request) -> Response:
        """Serve the OpenSearch description so browsers can add Leap as a search engine."""
        base = str(request.base_url).rstrip("/")
        body = _OPENSEARCH_TEMPLATE.format(
            name=escape(settings.app_name),
            base=escape(base, {'"': "&quot;"}),
        )
        return Response(content=body, media_type=OPENSEARCH_MEDIA_TYPE)

    return app
