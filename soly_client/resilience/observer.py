"""Passive detection of session recovery that happened outside the attempt loop."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from soly_client.cache import CacheEvent, QueryCache
from soly_client.resilience.state import ReconnectionState

LOGGER = logging.getLogger(__name__)


class ConnectivityObserver:
    """Marks the connection healthy when the session resource is repopulated out of band."""

    def __init__(self, cache: QueryCache, state: ReconnectionState, session_key: str) -> None:
        self._cache = cache
        self._state = state
        self._session_key = session_key
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._cache.subscribe(self.on_event)

    def detach(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def on_event(self, event: CacheEvent) -> None:
        if event.resource_key != self._session_key:
            return
        if event.status != "success" or not event.has_data:
            return
        state = self._state
        if state.is_connected or state.is_reconnecting:
            return
        state.mark_connected()
        LOGGER.info("Session recovered outside the reconnection loop; connection marked healthy")
