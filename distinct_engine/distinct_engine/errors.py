"""Error hierarchy for distinct-value lookups.

Every per-request failure is a :class:`DistinctValuesError`.  The service
layer converts them into the ``{"message": ..., "success": false}`` envelope;
``kind`` and ``status_code`` let hosts pick a transport status without
parsing the message.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Coarse classification of a failed lookup."""

    NOT_FOUND = "not_found"
    UNSUPPORTED_STORE = "unsupported_store"
    PARSE_FAILURE = "parse_failure"
    SUBSTITUTION_FAILURE = "substitution_failure"
    EXECUTION_FAILURE = "execution_failure"


class DistinctValuesError(Exception):
    """Base exception for all lookup failures."""

    kind: ErrorKind = ErrorKind.EXECUTION_FAILURE
    status_code: int = 500


class NotFoundError(DistinctValuesError):
    """The layer, its feature source, or the requested column does not exist."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404


class InvalidLayerReferenceError(NotFoundError):
    """A layer name without the ``namespace:table`` separator."""


class ColumnNotFoundError(NotFoundError):
    """No select item of a virtual view matches the requested column."""


class UnsupportedStoreError(DistinctValuesError):
    """The layer is not backed by a relational (JDBC-style) store."""

    kind = ErrorKind.UNSUPPORTED_STORE
    status_code = 422


class QueryParseError(DistinctValuesError):
    """View SQL or a generated predicate could not be parsed."""

    kind = ErrorKind.PARSE_FAILURE
    status_code = 400


class FilterTranslationError(QueryParseError):
    """The filter text could not be translated into a SQL predicate."""


class SubstitutionError(DistinctValuesError):
    """A view placeholder stayed unresolved or a parameter value was rejected."""

    kind = ErrorKind.SUBSTITUTION_FAILURE
    status_code = 400


class ExecutionError(DistinctValuesError):
    """The database rejected or failed the composed statement."""

    kind = ErrorKind.EXECUTION_FAILURE
    status_code = 500


class CatalogConfigError(Exception):
    """The catalog configuration file is missing or invalid."""
