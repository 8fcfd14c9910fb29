"""FastAPI dependency injection for settings and the lookup service."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends

from distinct_api.config import APISettings, load_api_settings
from distinct_engine.catalog import load_catalog
from distinct_engine.config import Settings, load_settings
from distinct_engine.service import DistinctValuesService

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

_settings_cache: APISettings | None = None


def get_settings() -> APISettings:
    """Return the cached :class:`APISettings` singleton."""
    global _settings_cache  # noqa: PLW0603
    if _settings_cache is None:
        _settings_cache = load_api_settings()
    return _settings_cache


# ---------------------------------------------------------------------------
# Lookup service
# ---------------------------------------------------------------------------

_service: DistinctValuesService | None = None


def init_service(settings: APISettings, engine_settings: Settings | None = None) -> DistinctValuesService:
    """Load the catalog and create the global lookup service."""
    global _service  # noqa: PLW0603
    engine_settings = engine_settings or load_settings()
    catalog_path = settings.catalog_path or engine_settings.catalog_path
    catalog = load_catalog(catalog_path)
    _service = DistinctValuesService(catalog, engine_settings)
    return _service


def dispose_service() -> None:
    """Dispose every store connection pool (call during shutdown)."""
    global _service  # noqa: PLW0603
    if _service is not None:
        _service.catalog.dispose()
        _service = None


def get_service() -> DistinctValuesService:
    """Return the global lookup service.

    Raises
    ------
    RuntimeError
        If :func:`init_service` has not run (the app was started without
        its lifespan).
    """
    if _service is None:
        raise RuntimeError(
            "Lookup service has not been initialised. Ensure init_service() is called during application startup."
        )
    return _service


ServiceDep = Annotated[DistinctValuesService, Depends(get_service)]
