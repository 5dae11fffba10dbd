"""Session resource registration backed by the query cache."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from soly_client.cache import QueryCache
from soly_client.config import ClientSettings
from soly_client.session.base import BackendSession

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[[ClientSettings], BackendSession]


class SessionProvider:
    """Creates the backend session on demand and exposes it as a cached read."""

    def __init__(self, settings: ClientSettings, cache: QueryCache, session_factory: SessionFactory) -> None:
        self._settings = settings
        self._cache = cache
        self._session_factory = session_factory
        self._current: Optional[BackendSession] = None
        self._created = 0
        cache.register(settings.session_key, self._create_session)

    @property
    def key(self) -> str:
        return self._settings.session_key

    @property
    def sessions_created(self) -> int:
        return self._created

    async def get(self) -> BackendSession:
        """Return the live session, creating it when missing or invalidated."""

        return await self._cache.fetch(self.key)

    async def close(self) -> None:
        if self._current is None:
            return
        try:
            await self._current.close()
        except Exception:  # noqa: BLE001
            LOGGER.debug("Suppress session close error", exc_info=True)
        self._current = None

    async def _create_session(self) -> BackendSession:
        session = self._session_factory(self._settings)
        try:
            await session.connect()
        except BaseException:
            try:
                await session.close()
            except Exception:  # noqa: BLE001
                LOGGER.debug("Suppress failed session close error", exc_info=True)
            raise
        previous, self._current = self._current, session
        self._created += 1
        LOGGER.info("Backend session created (#%s)", self._created)
        if previous is not None:
            try:
                await previous.close()
            except Exception:  # noqa: BLE001
                LOGGER.debug("Suppress stale session close error", exc_info=True)
        return session
