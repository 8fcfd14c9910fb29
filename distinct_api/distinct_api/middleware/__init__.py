"""ASGI middleware and logging helpers."""
