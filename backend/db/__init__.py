"""Database helpers for shared PostgreSQL access."""

from .pool import get_async_pool, close_async_pool
from .schema import ensure_schema

__all__ = ["get_async_pool", "close_async_pool", "ensure_schema"]
