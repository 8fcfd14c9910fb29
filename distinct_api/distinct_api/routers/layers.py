"""Catalog listing endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from distinct_api.dependencies import ServiceDep

router = APIRouter(tags=["layers"])


@router.get("/layers")
def list_layers(service: ServiceDep) -> list[dict[str, Any]]:
    """List configured layers and whether each is a table, a view or unsupported."""
    return [
        {"name": layer.name, "store": layer.store, "kind": layer.kind, "detail": layer.detail}
        for layer in service.describe_layers()
    ]
