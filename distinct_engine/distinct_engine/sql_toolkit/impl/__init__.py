"""SQL toolkit backend implementations."""
