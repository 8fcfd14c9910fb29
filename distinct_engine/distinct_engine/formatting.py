"""Row formatting for distinct-value results."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from distinct_engine.models.request import OutputShape

Row = str | dict[str, str | None] | None


def format_value(value: Any) -> str | None:
    """Render one database value as text; ``NULL`` stays ``None``."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_rows(values: Iterable[Any], shape: OutputShape, add_quotes: bool = False) -> list[Row]:
    """Format single-column values as bare strings or ``{"dsp", "val"}`` pairs.

    Quoting wraps ``val`` in apostrophes without escaping any embedded ones.
    """
    rows: list[Row] = []
    for value in values:
        text = format_value(value)
        if shape is OutputShape.LIST:
            rows.append(text)
            continue
        quoted = f"'{text}'" if add_quotes and text is not None else text
        rows.append({"dsp": text, "val": quoted})
    return rows
