"""Shared aiohttp session handling for HTTP price sources"""

from typing import Any, Dict, Optional

import aiohttp

from ..base import FeedError, PriceSource


class HttpPriceSource(PriceSource):
    """Price source backed by a lazily created aiohttp session"""

    BASE_URL = ""

    def __init__(self, name: str, **kwargs):
        super().__init__(name=name, **kwargs)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=10)
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        session = await self._get_session()
        async with session.get(f"{self.BASE_URL}{path}", params=params) as resp:
            if resp.status != 200:
                text = await resp.text()
                raise FeedError(f"{self.name} API error {resp.status}: {text}")
            return await resp.json()
