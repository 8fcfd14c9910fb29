"""Single-line JSON log records.

Enabled with ``DISTINCT_API_STRUCTURED_LOGGING=true``; the app then routes
the root logger through one ``StreamHandler`` using :class:`JSONFormatter`.
Besides the level, logger and message, a line carries whichever of these
record extras are set:

``request``
    the access-log record built by ``RequestLoggingMiddleware``;
``layer`` / ``request_id``
    the lookup context attached by the engine's per-lookup logger adapter;
``exc_info``
    the formatted traceback of a failed lookup.
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

_CONTEXT_FIELDS: tuple[str, ...] = ("request", "layer", "request_id")


class JSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update(
            (name, getattr(record, name)) for name in _CONTEXT_FIELDS if getattr(record, name, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            line["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        # default=str covers values such as Decimal or UUID in request extras.
        return json.dumps(line, default=str, ensure_ascii=False)
