"""Distinct-value lookups over catalog layers backed by tables or parameterized SQL views."""

__version__ = "0.4.0"
