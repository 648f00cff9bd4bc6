"""Repository server transport.

Resolves a relative path such as ``/batch/project?key=foo&preview=false``
against the configured server and returns the response body together with
a flag telling whether it was served from the local response cache.

Uses httpx.AsyncClient which is meant to be long-lived and reused; each
``HttpMetadataTransport`` owns one client, created lazily and released by
``aclose()``.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import NamedTuple, Optional, Protocol

import httpx
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    wait_exponential,
)

from batchrepo.core.config import settings
from batchrepo.core.errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)


class FetchResult(NamedTuple):
    text: str
    from_cache: bool


class MetadataTransport(Protocol):
    """Anything able to resolve a relative path to a response body."""

    async def fetch(self, path: str) -> FetchResult:
        """Return the body for *path*.

        Raises:
            TransportError: the body could not be obtained.
        """
        ...


class LoadStrategy(str, Enum):
    SERVER_FIRST = "server_first"
    CACHE_FIRST = "cache_first"
    SERVER_ONLY = "server_only"
    CACHE_ONLY = "cache_only"


class ResponseCache:
    """In-memory path -> body cache shared by transports.  Not persisted."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> str | None:
        with self._lock:
            return self._entries.get(path)

    def put(self, path: str, text: str) -> None:
        with self._lock:
            self._entries[path] = text

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class HttpMetadataTransport:
    """``MetadataTransport`` backed by the repository server over HTTP.

    The *strategy* decides how the response cache is consulted:

    - ``server_first``: ask the server, fall back to the cache when it is
      unreachable or answers 5xx.  Client errors (4xx) are raised.
    - ``cache_first``: answer from the cache when possible.
    - ``server_only``: never answer from the cache.
    - ``cache_only``: never contact the server; a miss is a ``TransportError``.

    Every body obtained from the server is written to the cache.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        strategy: LoadStrategy | str | None = None,
        cache: ResponseCache | None = None,
    ) -> None:
        self._base_url = (base_url or settings.server_url).rstrip("/")
        raw_strategy = strategy or settings.load_strategy
        try:
            self._strategy = LoadStrategy(raw_strategy)
        except ValueError:
            raise ConfigurationError(f"Unknown load strategy '{raw_strategy}'") from None
        self.cache = cache if cache is not None else ResponseCache()
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def strategy(self) -> LoadStrategy:
        return self._strategy

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        """Return the AsyncClient.  Creates one if missing."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(settings.http_timeout),
                follow_redirects=True,
                verify=settings.http_verify_ssl,
                headers={"User-Agent": settings.user_agent},
            )
        return self._client

    async def aclose(self) -> None:
        """Close the AsyncClient gracefully."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP client for %s closed.", self._base_url)

    async def __aenter__(self) -> HttpMetadataTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def fetch(self, path: str) -> FetchResult:
        if self._strategy in (LoadStrategy.CACHE_FIRST, LoadStrategy.CACHE_ONLY):
            cached = self.cache.get(path)
            if cached is not None:
                logger.debug("Cache hit for %s", path)
                return FetchResult(cached, True)
            if self._strategy is LoadStrategy.CACHE_ONLY:
                raise TransportError(f"No cached response for {path} (cache-only mode)")

        try:
            text = await self._fetch_from_server(path)
        except TransportError as exc:
            if self._strategy is LoadStrategy.SERVER_FIRST and _is_unavailable(exc):
                cached = self.cache.get(path)
                if cached is not None:
                    logger.warning("Server unavailable (%s), using cached response for %s", exc, path)
                    return FetchResult(cached, True)
            raise

        self.cache.put(path, text)
        return FetchResult(text, False)

    async def _fetch_from_server(self, path: str) -> str:
        """GET *path* from the server, retrying transient network failures.

        The ``stop`` condition uses a lambda so ``settings.http_max_retries``
        is read per-attempt, not at import time.
        """
        try:
            return await self._get_with_retry(path)
        except RetryError as exc:
            raise TransportError(
                f"Failed to fetch {path} after {settings.http_max_retries + 1} attempts: "
                f"{exc.last_attempt.exception()}"
            ) from exc

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        stop=lambda rs: rs.attempt_number >= settings.http_max_retries + 1,
        wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=False,
    )
    async def _get_with_retry(self, path: str) -> str:
        """Single GET attempt; tenacity retries on transient errors."""
        return await self._do_get(path)

    async def _do_get(self, path: str) -> str:
        client = self._get_client()
        try:
            response = await client.get(path)
        except httpx.InvalidURL as exc:
            raise TransportError(f"Invalid URL '{self._base_url}{path}': {exc}") from exc
        except httpx.TimeoutException:
            raise  # propagate for retry logic
        except httpx.ConnectError:
            raise  # propagate for retry logic
        except httpx.RequestError as exc:
            raise TransportError(f"Request error for '{path}': {exc}") from exc

        if response.is_error:
            raise TransportError(
                f"Server returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
            )
        return response.text


def _is_unavailable(exc: TransportError) -> bool:
    """True when the server was unreachable or failed, as opposed to refusing the request."""
    return exc.status_code is None or exc.status_code >= 500
