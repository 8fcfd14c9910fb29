"""Health-check and readiness probe endpoints.

``/health`` (liveness) is registered under the versioned API prefix
(``/api/v1/health``) and always answers 200.  ``/ready`` is registered at
the application root and answers 503 while any relational store is
unreachable.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from distinct_api import __version__
from distinct_api.dependencies import ServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(service: ServiceDep) -> dict[str, Any]:
    """Return service health with per-store connectivity.

    ``status`` is ``degraded`` when a relational store did not answer
    ``SELECT 1``.
    """
    stores = service.check_stores()
    return {
        "status": "degraded" if "unavailable" in stores.values() else "healthy",
        "version": __version__,
        "stores": stores,
    }


# ---------------------------------------------------------------------------
# Readiness probe (outside API versioning)
# ---------------------------------------------------------------------------

readiness_router = APIRouter(tags=["infrastructure"])


@readiness_router.get("/ready")
def readiness_probe(service: ServiceDep) -> JSONResponse:
    """Kubernetes-style readiness probe."""
    stores = service.check_stores()
    ready = "unavailable" not in stores.values()
    if not ready:
        logger.error("Readiness: unavailable stores %s", sorted(n for n, s in stores.items() if s == "unavailable"))
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "version": __version__,
            "checks": stores,
        },
    )
