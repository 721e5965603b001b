"""
Async client for the public Spotify Web API search endpoint.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import aiohttp

from tri_spotify.exceptions import ResolutionError

log = logging.getLogger(__name__)


class SpotifySearchClient:
    """
    Resolves free-text titles to track ids through the Web API.

    A single aiohttp session is shared by every request the service handles;
    the bearer token is supplied per call because it belongs to the caller.
    """

    def __init__(self, base_url: str = "https://api.spotify.com", max_workers: int = 8):
        """
        Initializes the search client.

        Args:
            base_url: Scheme and host of the Web API, without a trailing slash.
            max_workers: Used to size the connection pool.
        """
        self.base_url = base_url.rstrip("/")
        self.max_workers = max_workers
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_workers * 2,
                limit_per_host=self.max_workers,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"Accept-Encoding": "gzip, deflate"},
                timeout=aiohttp.ClientTimeout(total=30, connect=10, sock_read=20),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def api_call(self, endpoint: str, token: str, **params: Any) -> Dict[str, Any]:
        """Makes an authenticated GET against the Web API and decodes the JSON body."""
        await self._initialize_session()
        start_time = time.monotonic()

        async with self._session.get(
            f"{self.base_url}/v1/{endpoint}",
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        ) as r:
            duration_ms = (time.monotonic() - start_time) * 1000
            log.debug(f"Web API {endpoint} answered {r.status} in {duration_ms:.0f}ms")

            if r.status == 401:
                raise ResolutionError("Spotify API rejected the access token.")
            if r.status >= 400:
                raise ResolutionError(f"Spotify API error: {r.status}")
            return await r.json(content_type=None)

    async def search_track_id(self, query: str, token: str) -> str:
        """
        Returns the id of the top track result for a free-text query.

        Raises:
            ResolutionError: If the API fails or returns no track.
        """
        try:
            results = await self.api_call(
                "search", token, q=query, type="track", limit=1
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ResolutionError(f"Spotify search failed: {e}") from e

        if not isinstance(results, dict):
            raise ResolutionError("Spotify search returned an unexpected payload.")

        items = (results.get("tracks") or {}).get("items") or []
        if items and isinstance(items[0], dict) and items[0].get("id"):
            track_id = str(items[0]["id"])
            log.debug(f"Search '{query}' resolved to track {track_id}")
            return track_id
        raise ResolutionError(f"No track found for '{query}'.")
