"""Per-lookup diagnostics.

Each lookup gets its own :class:`logging.LoggerAdapter` carrying the layer
name and a request id.  The service creates it and passes it to the resolver
and composer, so their records can be correlated without any shared state.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import MutableMapping
from typing import Any

Diagnostics = logging.Logger | logging.LoggerAdapter  # type: ignore[type-arg]


class LookupLogAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Prefix messages with ``[request_id layer]`` and attach both as extras."""

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        kwargs["extra"] = {**extra, **kwargs.get("extra", {})}
        return f"[{extra.get('request_id')} {extra.get('layer')}] {msg}", kwargs


def lookup_logger(logger: logging.Logger, layer: str, request_id: str | None = None) -> LookupLogAdapter:
    """Return a diagnostics sink for one lookup."""
    return LookupLogAdapter(logger, {"layer": layer, "request_id": request_id or uuid.uuid4().hex[:12]})
