"""Adapter that rebuilds the session through the query cache."""

from __future__ import annotations

import logging

from soly_client.cache import QueryCache

LOGGER = logging.getLogger(__name__)


class CacheInvalidationBridge:
    """Forces re-creation of the session resource and reconciles dependent reads."""

    def __init__(self, cache: QueryCache, session_key: str) -> None:
        self._cache = cache
        self._session_key = session_key

    @property
    def session_key(self) -> str:
        return self._session_key

    async def invalidate_and_refetch(self) -> None:
        self._cache.invalidate(self._session_key)
        await self._cache.refetch(self._session_key)

    def session_has_data(self) -> bool:
        state = self._cache.get_state(self._session_key)
        return state is not None and state.status == "success" and state.has_data

    async def refetch_all_except(self) -> None:
        LOGGER.debug("Refetching cached reads except %s", self._session_key)
        await self._cache.refetch_matching(lambda key: key != self._session_key)
