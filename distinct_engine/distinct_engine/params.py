"""View parameter parsing and ``%name%`` placeholder substitution."""

from __future__ import annotations

import re
from collections.abc import Mapping
from urllib.parse import unquote

from distinct_engine.catalog import VirtualView
from distinct_engine.errors import SubstitutionError
from distinct_engine.filters import STRING_LITERAL_RE

_PLACEHOLDER_RE = re.compile(r"%([A-Za-z_]\w*)%")


def parse_view_params(raw: str | None) -> dict[str, str]:
    """Parse a URL-encoded ``name:value;name2:value2`` list.

    Each pair splits on its first ``:`` so values may contain colons.  Empty
    segments are skipped.  A later duplicate overrides an earlier one.
    """
    if not raw:
        return {}

    assignments: dict[str, str] = {}
    for segment in unquote(raw).split(";"):
        if not segment.strip():
            continue
        name, sep, value = segment.partition(":")
        name = name.strip()
        if not sep or not name:
            raise SubstitutionError(f"Malformed view parameter {segment!r}; expected name:value.")
        assignments[name] = value
    return assignments


def substitute_placeholders(view: VirtualView, assignments: Mapping[str, str]) -> str:
    """Return the view SQL with every declared placeholder replaced.

    Caller values are applied first and always win; declared defaults fill
    whatever is left.  A declared placeholder that is still present afterwards
    raises :class:`SubstitutionError`, as does any other ``%name%`` token left
    outside string literals (a placeholder the view never declared).
    """
    sql = view.sql

    for name, value in assignments.items():
        parameter = view.parameters.get(name)
        if parameter is not None:
            parameter.validate(value)
        sql = sql.replace(f"%{name}%", value)

    for parameter in view.parameters.values():
        if parameter.default_value is not None:
            sql = sql.replace(parameter.placeholder, parameter.default_value)

    unresolved = {p.name for p in view.parameters.values() if p.placeholder in sql}
    unresolved.update(_PLACEHOLDER_RE.findall(STRING_LITERAL_RE.sub("''", sql)))
    if unresolved:
        raise SubstitutionError(
            f"Unresolved view parameter(s) in '{view.name}': {', '.join(sorted(unresolved))}."
        )
    return sql
