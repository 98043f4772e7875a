"""
Fetch — Download the upstream snapshot archive.

Streams the response body to disk so large archives never sit in memory.
Redirects are always followed (GitHub answers archive URLs with a 302 to
codeload.github.com).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx

from .. import __version__
from ..errors import FetchError, FilesystemError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _get_headers() -> dict:
    return {
        "Accept": "application/zip, application/octet-stream, */*",
        # Content-Length must describe the bytes written to disk
        "Accept-Encoding": "identity",
        "User-Agent": f"proto-mirror/{__version__}",
    }


def download_archive(
    url: str,
    dest: Path,
    *,
    timeout: float = 60.0,
    client: Optional[httpx.Client] = None,
) -> int:
    """
    Download ``url`` to ``dest``.

    Returns the number of bytes written. Raises FetchError on a transport
    error, a non-2xx final status or a body shorter than Content-Length,
    and FilesystemError if ``dest`` cannot be written.
    """
    owns_client = client is None
    if client is None:
        client = httpx.Client(headers=_get_headers(), timeout=timeout)

    logger.info(f"[proto-mirror] Downloading {url}", extra={"step": "fetch"})
    try:
        with client.stream("GET", url, follow_redirects=True) as resp:
            if resp.history:
                logger.debug(f"[proto-mirror] Redirected to {resp.url}", extra={"step": "fetch"})

            if resp.status_code < 200 or resp.status_code >= 300:
                raise FetchError(
                    f"HTTP {resp.status_code} fetching archive",
                    details={"url": str(resp.url), "status": resp.status_code},
                )

            expected = None
            if resp.headers.get("Content-Encoding", "identity") == "identity":
                expected = resp.headers.get("Content-Length")
            written = _write_body(resp, dest)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"Download failed: {e}", details={"url": url}) from e
    finally:
        if owns_client:
            client.close()

    if expected is not None and expected.isdigit() and int(expected) != written:
        raise FetchError(
            f"Truncated download ({written} of {expected} bytes)",
            path=dest,
            details={"url": url, "expected": int(expected), "received": written},
        )

    logger.info(f"[proto-mirror] Downloaded {written} bytes to {dest}", extra={"step": "fetch"})
    return written


def _write_body(resp: httpx.Response, dest: Path) -> int:
    written = 0
    try:
        with open(dest, "wb") as f:
            for chunk in resp.iter_bytes(CHUNK_SIZE):
                f.write(chunk)
                written += len(chunk)
    except OSError as e:
        raise FilesystemError(f"Cannot write archive ({e.strerror})", path=dest) from e
    return written
