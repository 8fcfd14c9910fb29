"""FastAPI application entry-point for the distinct-values service."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from distinct_api import __version__
from distinct_api.config import APISettings
from distinct_api.dependencies import dispose_service, get_settings, init_service
from distinct_api.middleware.logging import CORRELATION_HEADER, RequestLoggingMiddleware
from distinct_api.routers import distinct_values, health, layers

logger = logging.getLogger(__name__)


def configure_structured_logging() -> None:
    """Replace the root handlers with a single JSON-lines handler."""
    from distinct_api.middleware.json_formatter import JSONFormatter

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup / shutdown lifecycle.

    On startup:
    - Switch to JSON logs when requested.
    - Load the catalog and create the lookup service.

    On shutdown:
    - Dispose every store's connection pool.
    """
    settings: APISettings = get_settings()

    if settings.structured_logging:
        configure_structured_logging()
        logger.info("Structured JSON logging enabled")

    service = init_service(settings)
    logger.info("Lookup service initialised with %d layer(s)", len(service.catalog.feature_types()))

    yield

    dispose_service()
    logger.info("Application shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Construct and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="geodistinct",
        description="Distinct values of layer columns backed by tables or parameterized SQL views.",
        version=__version__,
        lifespan=lifespan,
    )

    # -- Middleware (outermost first) ----------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", CORRELATION_HEADER, "Accept"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # -- Routers -------------------------------------------------------------

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(distinct_values.router, prefix="/api/v1")
    app.include_router(layers.router, prefix="/api/v1")

    # Probes stay outside the versioned prefix.
    app.include_router(health.readiness_router)

    # -- Exception handlers --------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Invalid parameters get the same envelope as failed lookups.
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ())[1:])}: {err.get('msg')}" for err in exc.errors()
        )
        logger.debug("Invalid request on %s: %s", request.url.path, problems)
        return JSONResponse(status_code=400, content={"message": f"Error: {problems}", "success": False})

    return app


# Module-level application instance used by ``uvicorn distinct_api.main:app``.
app = create_app()
