"""Cached JSON fetcher handed to preset functions as props["fetcher"].

Presets that need outside analysis (beat detection, transcription
lookups) POST a JSON body to a service and read back JSON. The fetcher
memoizes responses per (url, body) so re-running a generation pass, or
two presets asking the same question, costs one request.

    async with CachedFetcher() as fetcher:
        beats = await fetcher("https://analysis.example/beats", {"src": url})
"""

import json
import logging

import httpx

from .common import deep_copy

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 30.0


def _cache_key(url: str, body) -> tuple[str, str]:
    return url, json.dumps(body, sort_keys=True, default=str)


class CachedFetcher:
    """Async callable: await fetcher(url, body) -> decoded JSON.

    Args:
        client: Optional httpx.AsyncClient. When omitted one is created
            on first use and closed by aclose().
        timeout: Request timeout in seconds for the owned client.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = DEFAULT_TIMEOUT):
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._cache: dict[tuple[str, str], object] = {}
        self.requests_made = 0

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def __call__(self, url: str, body=None):
        key = _cache_key(url, body)
        if key in self._cache:
            logger.debug("Fetcher cache hit: %s", url)
            return deep_copy(self._cache[key])

        logger.info("POST %s", url)
        response = await self._get_client().post(url, json=body)
        self.requests_made += 1
        response.raise_for_status()
        data = response.json()
        self._cache[key] = data
        return deep_copy(data)

    def clear(self) -> None:
        """Forget every cached response."""
        self._cache.clear()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
