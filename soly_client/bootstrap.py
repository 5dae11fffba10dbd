"""Client bootstrap entrypoint for session/cache/resilience wiring."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from soly_client.cache import QueryCache
from soly_client.config import ClientSettings, get_settings
from soly_client.resilience import LoggingNotifier, Notifier, ResilienceManager
from soly_client.session import DummySession, SessionFactory, SessionProvider

LOGGER = logging.getLogger(__name__)


@dataclass
class ClientRuntime:
    """Everything one application session owns."""

    settings: ClientSettings
    cache: QueryCache
    sessions: SessionProvider
    resilience: ResilienceManager

    async def stop(self) -> None:
        self.resilience.stop()
        await self.sessions.close()


async def setup(
    settings: Optional[ClientSettings] = None,
    *,
    session_factory: Optional[SessionFactory] = None,
    notifier: Optional[Notifier] = None,
) -> ClientRuntime:
    """Construct, wire, and start the client runtime."""

    settings = settings or get_settings()
    cache = QueryCache()
    sessions = SessionProvider(settings, cache, session_factory or (lambda _: DummySession()))
    resilience = ResilienceManager(settings, cache, notifier or LoggingNotifier())
    resilience.start()
    try:
        await sessions.get()
    except Exception as exc:  # noqa: BLE001
        LOGGER.warning("Initial session creation failed: %s", exc)
        resilience.check_and_reconnect(exc)
    runtime = ClientRuntime(settings=settings, cache=cache, sessions=sessions, resilience=resilience)
    return runtime


async def serve_forever(settings: Optional[ClientSettings] = None) -> None:
    """Start the client runtime and keep the process alive."""

    runtime = await setup(settings)
    try:
        await asyncio.Future()  # block until cancelled
    except asyncio.CancelledError:
        LOGGER.info("Client shutdown requested")
        raise
    finally:
        await runtime.stop()
