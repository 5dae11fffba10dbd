"""Lifecycle owner for the connection resilience components."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from soly_client.cache import CacheEvent, QueryCache
from soly_client.config import ClientSettings
from soly_client.resilience.backoff import BackoffScheduler
from soly_client.resilience.bridge import CacheInvalidationBridge
from soly_client.resilience.classifier import FailureClassifier
from soly_client.resilience.coordinator import ReconnectionCoordinator, Sleep
from soly_client.resilience.notifications import NotificationThrottle, Notifier
from soly_client.resilience.observer import ConnectivityObserver
from soly_client.resilience.state import ConnectionStatus, ReconnectionState

LOGGER = logging.getLogger(__name__)


class ResilienceManager:
    """Builds the reconnection state once per application session and wires its components.

    ``check_and_reconnect`` is the only call the rest of the application needs:
    hand it any failure and it decides whether the session must be rebuilt.
    """

    def __init__(
        self,
        settings: ClientSettings,
        cache: QueryCache,
        notifier: Notifier,
        *,
        backoff: Optional[BackoffScheduler] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self.state = ReconnectionState()
        self.throttle = NotificationThrottle(
            notifier,
            self.state,
            cooldown=settings.notification_cooldown_ms / 1000,
            clock=clock,
        )
        self.bridge = CacheInvalidationBridge(cache, settings.session_key)
        self.coordinator = ReconnectionCoordinator(
            settings,
            self.state,
            classifier=FailureClassifier(settings.transport_failure_signatures),
            backoff=backoff or BackoffScheduler.from_settings(settings),
            throttle=self.throttle,
            bridge=self.bridge,
            clock=clock,
            sleep=sleep,
        )
        self.observer = ConnectivityObserver(cache, self.state, settings.session_key)
        self._query_keys = frozenset(settings.reconnect_query_keys) - {settings.session_key}
        self._unsubscribe_errors: Optional[Callable[[], None]] = None
        self._started = False

    @property
    def status(self) -> ConnectionStatus:
        return self.state.snapshot()

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        self.observer.attach()
        if self._query_keys:
            self._unsubscribe_errors = self._cache.subscribe(self._on_cache_event)
        self._started = True
        LOGGER.debug("Connection resilience manager attached (session key %s)", self._settings.session_key)

    def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        self.coordinator.cancel_pending()
        self.throttle.dismiss_active()
        self.observer.detach()
        unsubscribe, self._unsubscribe_errors = self._unsubscribe_errors, None
        if unsubscribe is not None:
            unsubscribe()
        episode = self.coordinator.episode_task
        if episode is not None and not episode.done():
            LOGGER.info("Reconnection episode still in flight at teardown; it will run to completion")

    def check_and_reconnect(self, error: Any) -> None:
        if not self._started:
            LOGGER.debug("Resilience manager stopped; ignoring failure: %s", error)
            return
        self.coordinator.check_and_reconnect(error)

    def _on_cache_event(self, event: CacheEvent) -> None:
        if event.status != "error" or event.resource_key not in self._query_keys:
            return
        if self.coordinator.reconciling:
            LOGGER.debug("Ignoring %s failure during post-reconnect refetch", event.resource_key)
            return
        if event.error is not None:
            self.check_and_reconnect(event.error)
