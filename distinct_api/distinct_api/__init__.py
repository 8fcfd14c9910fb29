"""HTTP host for distinct-value lookups."""

__version__ = "0.4.0"
