"""In-memory session for offline runs and tests."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .base import BackendSession

LOGGER = logging.getLogger(__name__)


class DummySession(BackendSession):
    """Answers calls from a local handler table instead of a backend."""

    def __init__(self, handlers: Optional[Dict[str, Callable[..., Any]]] = None) -> None:
        self._handlers = dict(handlers or {})
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        LOGGER.debug("Dummy session connect()")
        self._connected = True

    async def call(self, method: str, *args: Any) -> Any:
        if not self._connected:
            raise RuntimeError("Actor not available")
        handler = self._handlers.get(method)
        LOGGER.debug("Dummy session call(): %s%s", method, args)
        if handler is None:
            return None
        return handler(*args)

    async def close(self) -> None:
        LOGGER.debug("Dummy session close()")
        self._connected = False
