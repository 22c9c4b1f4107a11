"""HTTP client the game uses to talk to the leaderboard service.

Every call reports failure through its return value instead of raising:
the game keeps running on whatever leaderboard it saw last.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class LeaderboardClient:
    """Async client for ``/api/leaderboard``.

    No retries and no custom timeout: a failed call is logged and dropped.
    """

    def __init__(self, url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._url = url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._transport)
            logger.debug("LeaderboardClient started for %s", self._url)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("LeaderboardClient closed")

    async def submit(self, name: str, score: int) -> bool:
        """POST a score. True when the service accepted it."""
        if self._client is None:
            await self.start()
        try:
            response = await self._client.post(self._url, json={'name': name, 'score': score})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Leaderboard rejected score for %s: HTTP %d", name, e.response.status_code)
            return False
        except httpx.HTTPError as e:
            logger.error("Error adding to leaderboard: %s", e)
            return False
        return True

    async def fetch_top(self) -> Optional[List[Dict[str, Any]]]:
        """GET the top scores, or None if the call failed in any way."""
        if self._client is None:
            await self.start()
        try:
            response = await self._client.get(self._url)
            response.raise_for_status()
            entries = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Leaderboard fetch failed: HTTP %d", e.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error loading leaderboard: %s", e)
            return None

        if not isinstance(entries, list):
            logger.error("Unexpected leaderboard payload: %r", entries)
            return None
        return [
            {'name': e.get('name'), 'score': e.get('score')}
            for e in entries if isinstance(e, dict)
        ]
