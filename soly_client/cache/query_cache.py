"""In-process result cache keyed by operation identity."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

LOGGER = logging.getLogger(__name__)

QueryStatus = Literal["idle", "pending", "success", "error"]
Fetcher = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class CacheEvent:
    """Change notification emitted whenever a cached read changes status."""

    resource_key: str
    status: QueryStatus
    has_data: bool
    error: Optional[BaseException] = None


CacheListener = Callable[[CacheEvent], None]


@dataclass
class QueryState:
    status: QueryStatus = "idle"
    data: Any = None
    error: Optional[BaseException] = None
    updated_at: Optional[float] = None
    stale: bool = True

    @property
    def has_data(self) -> bool:
        return self.data is not None


class QueryCache:
    """Stores the latest result of each registered read and re-runs it on demand."""

    def __init__(self) -> None:
        self._fetchers: Dict[str, Fetcher] = {}
        self._states: Dict[str, QueryState] = {}
        self._inflight: Dict[str, asyncio.Task[Any]] = {}
        self._listeners: List[CacheListener] = []

    def register(self, key: str, fetcher: Fetcher) -> None:
        """Register (or replace) the fetcher backing ``key``."""

        if not key:
            raise ValueError("Cache key must be a non-empty string")
        self._fetchers[key] = fetcher
        self._states.setdefault(key, QueryState())

    def keys(self) -> List[str]:
        return list(self._fetchers)

    def get_state(self, key: str) -> Optional[QueryState]:
        return self._states.get(key)

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        """Register a change listener; returns the matching unsubscribe callable."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def invalidate(self, key: str) -> None:
        state = self._states.get(key)
        if state is None:
            return
        state.stale = True
        LOGGER.debug("Cache entry invalidated key=%s", key)

    async def fetch(self, key: str) -> Any:
        """Return fresh cached data, running the fetcher when stale. Raises on failure."""

        state = self._require_state(key)
        if not state.stale and state.status == "success":
            return state.data
        return await self._run(key)

    async def refetch(self, key: str) -> None:
        """Re-run the fetcher for ``key``; failures are recorded on the entry, not raised."""

        self._require_state(key)
        try:
            await self._run(key)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("Refetch failed key=%s: %s", key, exc)

    async def refetch_matching(self, predicate: Callable[[str], bool]) -> None:
        """Refetch every registered key accepted by ``predicate`` concurrently."""

        keys = [key for key in self._fetchers if predicate(key)]
        if not keys:
            return
        await asyncio.gather(*(self.refetch(key) for key in keys))

    async def _run(self, key: str) -> Any:
        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.create_task(self._execute(key), name=f"query-{key}")
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _execute(self, key: str) -> Any:
        state = self._states[key]
        fetcher = self._fetchers[key]
        state.status = "pending"
        self._emit(key, state)
        try:
            data = await fetcher()
        except Exception as exc:  # noqa: BLE001
            state.status = "error"
            state.error = exc
            state.updated_at = time.monotonic()
            self._emit(key, state)
            raise
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                self._inflight.pop(key, None)
        state.status = "success"
        state.data = data
        state.error = None
        state.stale = False
        state.updated_at = time.monotonic()
        self._emit(key, state)
        return data

    def _emit(self, key: str, state: QueryState) -> None:
        event = CacheEvent(
            resource_key=key,
            status=state.status,
            has_data=state.has_data,
            error=state.error if state.status == "error" else None,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                LOGGER.warning("Suppress cache listener error key=%s", key, exc_info=True)

    def _require_state(self, key: str) -> QueryState:
        state = self._states.get(key)
        if state is None:
            raise KeyError(f"No fetcher registered for cache key {key!r}")
        return state
