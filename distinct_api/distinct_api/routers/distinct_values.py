"""Distinct-values lookup endpoint.

The parameter names are the public contract (``layerName``,
``propertyName``, ``viewParams``, ``addQuotes``).  Success returns the JSON
array of values; failure returns ``{"message": ..., "success": false}``
with a status derived from the error kind.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from distinct_api.dependencies import ServiceDep
from distinct_engine.models import DistinctValuesRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["distinct-values"])


@router.get("/distinct-values")
def distinct_values(
    request: Request,
    service: ServiceDep,
    layer_name: Annotated[str, Query(alias="layerName", min_length=1)],
    property_name: Annotated[str, Query(alias="propertyName", min_length=1)],
    filter: Annotated[str | None, Query()] = None,
    view_params: Annotated[str | None, Query(alias="viewParams")] = None,
    add_quotes: Annotated[bool, Query(alias="addQuotes")] = False,
    limit: Annotated[int | None, Query(ge=0)] = None,
    order: Annotated[str | None, Query()] = None,
    type: Annotated[str | None, Query()] = None,
) -> JSONResponse:
    """Return the distinct values of one column of a layer.

    Runs synchronously in the threadpool: one connection per request,
    released before the response is sent.
    """
    lookup = DistinctValuesRequest(
        layer_name=layer_name,
        property_name=property_name,
        filter=filter,
        view_params=view_params,
        add_quotes=add_quotes,
        limit=limit,
        order=order,
        type=type,
    )
    request_id = getattr(request.state, "correlation_id", None)
    result = service.execute(lookup, request_id=request_id)
    return JSONResponse(status_code=result.status_code, content=result.payload)
