"""Process-wide access to the active :class:`SqlToolkit`.

The composer and the filter translator call :func:`get_sql_toolkit` unless
they are handed a toolkit explicitly.  Toolkits hold no per-request state, so
one instance serves every lookup.
"""

from __future__ import annotations

import threading
from typing import Callable

from ._protocols import SqlToolkit

ToolkitFactory = Callable[[], SqlToolkit]

_lock = threading.Lock()
_active: SqlToolkit | None = None
_override: ToolkitFactory | None = None


def _default_factory() -> SqlToolkit:
    from .impl.sqlglot_impl import SqlGlotToolkit

    return SqlGlotToolkit()


def register_implementation(factory_fn: ToolkitFactory) -> None:
    """Use *factory_fn* to build the toolkit from the next access on."""
    global _override, _active  # noqa: PLW0603
    with _lock:
        _override = factory_fn
        _active = None


def get_sql_toolkit() -> SqlToolkit:
    """Return the shared toolkit, building it on first use."""
    global _active  # noqa: PLW0603
    toolkit = _active
    if toolkit is None:
        with _lock:
            if _active is None:
                _active = (_override or _default_factory)()
            toolkit = _active
    return toolkit


def reset_toolkit() -> None:
    """Forget the registered factory and the built toolkit (tests only)."""
    global _override, _active  # noqa: PLW0603
    with _lock:
        _override = None
        _active = None
