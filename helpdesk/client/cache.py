import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger("query_cache")


@dataclass
class CacheEntry:
    data: Any
    stale: bool = False


def _path_of(key: str) -> str:
    return key.split("?", 1)[0]


class QueryCache:
    """
    API responses keyed by request path (query string included).

    `invalidate("/api/tickets/recent")` marks "/api/tickets/recent?limit=5"
    stale too: matching ignores the query string. Stale entries stay
    readable and are refetched on the next `fetch_query`.
    """

    def __init__(self, http: httpx.AsyncClient):
        self._http = http
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = CacheEntry(data)

    def is_stale(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def invalidate(self, path: str) -> int:
        hits = 0
        for key, entry in self._entries.items():
            if _path_of(key) == path:
                entry.stale = True
                hits += 1
        logger.debug("invalidated %s (%s entries)", path, hits)
        return hits

    async def fetch_query(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is not None and not entry.stale:
            return entry.data

        resp = await self._http.get(key)
        resp.raise_for_status()
        data = resp.json()
        self._entries[key] = CacheEntry(data)
        return data
