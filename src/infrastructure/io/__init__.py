"""Infrastructure I/O helpers (byte transport for snapshot sources)."""

from .fetch import FetchResult, fetch_bytes, fetch_bytes_sync, is_remote


__all__ = ["FetchResult", "fetch_bytes", "fetch_bytes_sync", "is_remote"]
