"""Parameterized virtual SQL views.

A virtual view stands in for a physical table: its SQL may reference
``%name%`` placeholders that are filled from request parameters, falling back
to the declared defaults.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from distinct_engine.errors import SubstitutionError


@dataclass(frozen=True, slots=True)
class ViewParameter:
    """A declared placeholder of a virtual view.

    ``validator`` is a regular expression every caller-supplied value must
    match in full.  Defaults are trusted configuration and are not validated.
    """

    name: str
    default_value: str | None = None
    validator: str | None = None

    @property
    def placeholder(self) -> str:
        return f"%{self.name}%"

    def validate(self, value: str) -> None:
        """Raise :class:`SubstitutionError` if *value* fails the validator."""
        if self.validator is None:
            return
        if re.fullmatch(self.validator, value) is None:
            raise SubstitutionError(
                f"Invalid value for view parameter '{self.name}': {value!r}"
            )


@dataclass(frozen=True, slots=True)
class VirtualView:
    """An immutable SQL template registered on a relational store."""

    name: str
    sql: str
    parameters: Mapping[str, ViewParameter] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))
