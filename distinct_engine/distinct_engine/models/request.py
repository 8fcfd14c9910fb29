"""Request model for a distinct-value lookup.

Field aliases are the externally observed parameter names
(``layerName``, ``propertyName``, ``viewParams``, ``addQuotes``).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OutputShape(str, Enum):
    """How each result row is emitted."""

    PAIRS = "pairs"  # {"dsp": ..., "val": ...}
    LIST = "list"  # bare value


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class DistinctValuesRequest(BaseModel):
    """Parameters of one lookup.

    ``filter`` and ``view_params`` are kept URL-encoded exactly as received;
    decoding happens where they are consumed.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    layer_name: str = Field(alias="layerName", min_length=1)
    property_name: str = Field(alias="propertyName", min_length=1)
    filter: str | None = None
    view_params: str | None = Field(default=None, alias="viewParams")
    add_quotes: bool = Field(default=False, alias="addQuotes")
    limit: int | None = Field(default=None, ge=0)
    order: str | None = None
    type: str | None = None

    @property
    def shape(self) -> OutputShape:
        return OutputShape.LIST if self.type == OutputShape.LIST.value else OutputShape.PAIRS

    @property
    def sort_direction(self) -> SortDirection | None:
        """The requested direction, or ``None`` for absent or unrecognised values."""
        if self.order is None:
            return None
        try:
            return SortDirection(self.order.upper())
        except ValueError:
            return None
