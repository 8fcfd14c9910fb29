"""API router modules."""

from __future__ import annotations

from distinct_api.routers import distinct_values, health, layers

__all__ = [
    "distinct_values",
    "health",
    "layers",
]
