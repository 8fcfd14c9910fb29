"""SQL toolkit: implementation-agnostic SELECT parsing, rewriting and filter encoding.

Usage::

    from distinct_engine.sql_toolkit import get_sql_toolkit, Dialect

    tk = get_sql_toolkit()
    stmt = tk.parser.parse_select("SELECT pop AS population FROM t", Dialect.POSTGRES)
    where = tk.filter_encoder.encode("population > 1000", Dialect.POSTGRES)
    sql = tk.renderer.render(stmt)

The default implementation delegates to SQLGlot.  A different backend can be
swapped in via ``register_implementation()`` without touching consumer code.
"""

from ._factory import get_sql_toolkit, register_implementation, reset_toolkit
from ._protocols import (
    UNCHANGED,
    SqlFilterEncoder,
    SqlParser,
    SqlRenderer,
    SqlSelectRewriter,
    SqlToolkit,
)
from ._types import (
    Dialect,
    SelectItem,
    SelectStatement,
    SqlFilterError,
    SqlNode,
    SqlParseError,
    SqlToolkitError,
)

__all__ = [
    # Factory
    "get_sql_toolkit",
    "register_implementation",
    "reset_toolkit",
    # Protocols
    "SqlToolkit",
    "SqlParser",
    "SqlRenderer",
    "SqlSelectRewriter",
    "SqlFilterEncoder",
    "UNCHANGED",
    # Types
    "Dialect",
    "SqlNode",
    "SelectItem",
    "SelectStatement",
    # Exceptions
    "SqlToolkitError",
    "SqlParseError",
    "SqlFilterError",
]
