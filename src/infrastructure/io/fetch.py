"""
Byte transport for snapshot sources.

Resolves a location to raw bytes:
- http:// and https:// via httpx.AsyncClient
- file:// URLs and plain paths from the local filesystem

Failures are raised as TransportError and never retried; the viewer shows
the message and stays failed until the next load.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from src.shared.exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class FetchResult:
    """Fetched bytes plus the size reported by the source.

    ``content_length`` only feeds the human-readable size stat; it falls back
    to the buffer length when the source does not report one.
    """

    data: bytes
    content_length: int


def is_remote(location: str) -> bool:
    """Check whether ``location`` is fetched over HTTP."""
    return urlparse(str(location)).scheme.lower() in ("http", "https")


def _local_path(location: str) -> Path:
    parsed = urlparse(str(location))
    if parsed.scheme.lower() == "file":
        return Path(unquote(parsed.path))
    return Path(location).expanduser()


def _parse_content_length(header: str | None, fallback: int) -> int:
    if not header:
        return fallback
    try:
        value = int(header)
    except ValueError:
        return fallback
    return value if value > 0 else fallback


async def _fetch_http(url: str, client: httpx.AsyncClient) -> FetchResult:
    try:
        response = await client.get(url)
    except httpx.ConnectError as e:
        raise TransportError(f"Cannot connect: {e}", url=url) from e
    except httpx.TimeoutException as e:
        raise TransportError("Request timed out", url=url) from e
    except httpx.HTTPError as e:
        raise TransportError(f"Request failed: {e}", url=url) from e

    if not response.is_success:
        raise TransportError(
            f"HTTP {response.status_code}", url=url, status_code=response.status_code
        )

    data = response.content
    content_length = _parse_content_length(response.headers.get("content-length"), len(data))
    return FetchResult(data=data, content_length=content_length)


async def _fetch_local(location: str) -> FetchResult:
    path = _local_path(location)
    try:
        data = await asyncio.to_thread(path.read_bytes)
    except FileNotFoundError as e:
        raise TransportError("File not found", url=str(path)) from e
    except OSError as e:
        raise TransportError(f"Cannot read file: {e.strerror or e}", url=str(path)) from e
    return FetchResult(data=data, content_length=len(data))


async def fetch_bytes(
    location: str,
    timeout: float = DEFAULT_TIMEOUT,
    client: httpx.AsyncClient | None = None,
) -> FetchResult:
    """
    Fetch snapshot bytes from a URL or local path.

    Parameters
    ----------
    location : str
        http(s) URL, file:// URL or filesystem path
    timeout : float
        Request timeout in seconds (HTTP only)
    client : httpx.AsyncClient | None
        Client to reuse; a short-lived one is created when omitted

    Returns
    -------
    FetchResult
        Raw bytes and reported size

    Raises
    ------
    TransportError
        On non-2xx responses, network errors or unreadable files
    """
    location = str(location)
    logger.debug(f"Fetching {location}")

    if not is_remote(location):
        result = await _fetch_local(location)
    elif client is not None:
        result = await _fetch_http(location, client)
    else:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned:
            result = await _fetch_http(location, owned)

    logger.debug(f"Fetched {len(result.data)} bytes from {location}")
    return result


def fetch_bytes_sync(location: str, timeout: float = DEFAULT_TIMEOUT) -> FetchResult:
    """Blocking wrapper around :func:`fetch_bytes` for CLI use."""
    return asyncio.run(fetch_bytes(location, timeout=timeout))
