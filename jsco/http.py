"""HTTP download layer for pyjsco."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
import logging
from pathlib import Path
import time
from urllib.parse import urlsplit

import httpx

from ._version import __version__
from .constants import DEFAULT_CACHE_DIR, DEFAULT_TIMEOUT_SECONDS, DOWNLOAD_CHUNK_SIZE
from .exceptions import ContentError, HttpStatusError, NetworkError, RequestTimeoutError

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, "int | None"], None]

_SHARED_CLIENT: ContextVar[httpx.AsyncClient | None] = ContextVar(
    "pyjsco_shared_client", default=None
)


def _build_headers() -> dict[str, str]:
    return {
        "User-Agent": f"pyjsco/{__version__}",
        "Accept": "application/javascript, application/json, text/plain, */*",
    }


@asynccontextmanager
async def use_shared_client(
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> AsyncIterator[httpx.AsyncClient]:
    """Provide a reusable HTTP client for all downloads within a run."""
    async with httpx.AsyncClient(
        timeout=timeout, follow_redirects=True, headers=_build_headers()
    ) as client:
        token = _SHARED_CLIENT.set(client)
        try:
            yield client
        finally:
            _SHARED_CLIENT.reset(token)


def with_cache_buster(url: str) -> str:
    """Append a timestamp query to URLs that carry no query of their own."""
    if urlsplit(url).query:
        return url
    return f"{url}?t={int(time.time() * 1000)}"


def read_cached(cache_dir: Path, cache_key: str) -> str | None:
    cache_file = cache_dir / cache_key
    try:
        return cache_file.read_bytes().decode("utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.debug("Ignoring unreadable cache entry %s: %s", cache_file, exc)
        return None


def write_cached(cache_dir: Path, cache_key: str, content: str) -> None:
    cache_dir.mkdir(parents=True, exist_ok=True)
    (cache_dir / cache_key).write_bytes(content.encode("utf-8"))


async def _stream_body(
    client: httpx.AsyncClient,
    url: str,
    on_progress: ProgressCallback | None,
) -> str:
    retry_once = True
    while True:
        try:
            async with client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise HttpStatusError(response.status_code, str(response.url))

                length = response.headers.get("content-length")
                total = int(length) if length and length.isdigit() else None
                downloaded = 0
                chunks: list[bytes] = []
                async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                    chunks.append(chunk)
                    downloaded += len(chunk)
                    if on_progress is not None:
                        on_progress(downloaded, total)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(url) from exc
        except httpx.ConnectError as exc:
            if retry_once:
                retry_once = False
                continue
            raise NetworkError(url, cause=exc.__class__.__name__) from exc
        except httpx.RequestError as exc:
            raise NetworkError(url, cause=exc.__class__.__name__) from exc

        body = b"".join(chunks).decode("utf-8", errors="replace")
        if not body.strip():
            raise ContentError(url)
        return body


async def download_with_progress(
    url: str,
    cache_key: str,
    *,
    cache_dir: Path | str = DEFAULT_CACHE_DIR,
    on_progress: ProgressCallback | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> str:
    """Return the body stored under ``cache_key``, downloading it on a miss."""
    cache_path = Path(cache_dir)
    cached = await asyncio.to_thread(read_cached, cache_path, cache_key)
    if cached is not None:
        LOGGER.info("Using cached version of %s", url)
        return cached

    LOGGER.info("Downloading %s", url)
    shared_client = _SHARED_CLIENT.get()
    if shared_client is None or timeout != DEFAULT_TIMEOUT_SECONDS:
        async with httpx.AsyncClient(
            timeout=timeout, follow_redirects=True, headers=_build_headers()
        ) as client:
            body = await _stream_body(client, url, on_progress)
    else:
        body = await _stream_body(shared_client, url, on_progress)

    try:
        await asyncio.to_thread(write_cached, cache_path, cache_key, body)
    except OSError as exc:
        LOGGER.warning("Could not cache %s: %s", url, exc)
    return body
