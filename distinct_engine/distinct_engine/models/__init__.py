"""Request and response models."""

from __future__ import annotations

from distinct_engine.models.request import DistinctValuesRequest, OutputShape, SortDirection

__all__ = [
    "DistinctValuesRequest",
    "OutputShape",
    "SortDirection",
]
