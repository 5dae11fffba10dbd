"""Reconnection attempt loop and its debounced entry point."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from soly_client.config import ClientSettings
from soly_client.resilience.backoff import BackoffScheduler
from soly_client.resilience.bridge import CacheInvalidationBridge
from soly_client.resilience.classifier import FailureClassifier
from soly_client.resilience.notifications import NotificationThrottle
from soly_client.resilience.state import ReconnectionState

LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class ReconnectionCoordinator:
    """Owns the reconnection episode: gating, pacing, session rebuild and outcome messaging."""

    def __init__(
        self,
        settings: ClientSettings,
        state: ReconnectionState,
        *,
        classifier: FailureClassifier,
        backoff: BackoffScheduler,
        throttle: NotificationThrottle,
        bridge: CacheInvalidationBridge,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._state = state
        self._classifier = classifier
        self._backoff = backoff
        self._throttle = throttle
        self._bridge = bridge
        self._clock = clock
        self._sleep = sleep
        self._app_name = settings.app_name
        self._max_attempts = int(settings.max_reconnect_attempts)
        self._debounce = settings.error_debounce_ms / 1000
        self._schedule_settle = settings.schedule_settle_ms / 1000
        self._rebuild_settle = settings.rebuild_settle_ms / 1000
        self._success_duration = settings.success_message_ms / 1000
        self._failure_duration = settings.failure_message_ms / 1000
        self._pending: Optional[asyncio.Task[None]] = None
        self._episode: Optional[asyncio.Task[None]] = None
        self._reconciling = False

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def episode_task(self) -> Optional[asyncio.Task[None]]:
        return self._episode

    @property
    def reconciling(self) -> bool:
        """True while dependent reads are being refetched after a confirmed recovery."""

        return self._reconciling

    @property
    def pending_task(self) -> Optional[asyncio.Task[None]]:
        return self._pending

    def check_and_reconnect(self, error: Any) -> None:
        """Schedule a reconnection episode if ``error`` warrants one. Never raises."""

        try:
            self._check_and_schedule(error)
        except Exception:  # noqa: BLE001
            LOGGER.warning("Suppress reconnection scheduling error", exc_info=True)

    def cancel_pending(self) -> None:
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()

    def _check_and_schedule(self, error: Any) -> None:
        if not isinstance(error, BaseException):
            return
        if not self._classifier.is_transport_failure(error):
            return
        state = self._state
        if state.is_reconnecting:
            return
        now = self._clock()
        if state.last_attempt_at is not None and now - state.last_attempt_at <= self._debounce:
            LOGGER.debug("Transport failure within debounce window ignored: %s", error)
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.warning("No running event loop; cannot schedule reconnection for: %s", error)
            return
        self.cancel_pending()
        self._pending = asyncio.create_task(self._deferred_attempt(error), name="session-reconnect-pending")

    async def _deferred_attempt(self, error: BaseException) -> None:
        await self._sleep(self._schedule_settle)
        if self._pending is asyncio.current_task():
            self._pending = None
        self._episode = asyncio.create_task(self.attempt(error), name="session-reconnect")
        self._episode.add_done_callback(self._log_episode_failure)

    @staticmethod
    def _log_episode_failure(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Reconnection episode crashed", exc_info=exc)

    async def attempt(self, error: BaseException) -> None:
        """Run one reconnection episode, bounded by ``max_attempts``."""

        state = self._state
        if state.is_reconnecting:
            return
        while state.attempt_count < self._max_attempts:
            attempt = state.begin_attempt(error, self._clock())
            try:
                self._throttle.show(
                    "info",
                    f"Reconnecting to {self._app_name}... (Attempt {attempt}/{self._max_attempts})",
                    None,
                )
                recovered = await self._rebuild_session(attempt)
            finally:
                state.end_attempt()
            if recovered:
                await self._complete_recovery(attempt)
                return
        self._exhaust()

    async def _rebuild_session(self, attempt: int) -> bool:
        delay = self._backoff.delay(attempt)
        LOGGER.info(
            "Session reconnect attempt %s/%s in %.2fs (cause: %s)",
            attempt,
            self._max_attempts,
            delay,
            self._state.last_error,
        )
        try:
            await self._sleep(delay)
            await self._bridge.invalidate_and_refetch()
            await self._sleep(self._rebuild_settle)
            if self._bridge.session_has_data():
                return True
            LOGGER.warning("Session still not available after reconnect attempt %s", attempt)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Session reconnect attempt %s failed: %s", attempt, exc)
        return False

    async def _complete_recovery(self, attempt: int) -> None:
        self._state.mark_connected()
        LOGGER.info("Session reconnected after %s attempt(s)", attempt)
        self._throttle.dismiss_active()
        self._throttle.show("success", f"Successfully reconnected to {self._app_name}!", self._success_duration)
        self._reconciling = True
        try:
            await self._bridge.refetch_all_except()
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            LOGGER.warning("Refetch of dependent reads after reconnect failed", exc_info=True)
        finally:
            self._reconciling = False

    def _exhaust(self) -> None:
        self._state.mark_exhausted()
        LOGGER.error(
            "Session reconnection gave up after %s attempts (cause: %s)",
            self._state.attempt_count,
            self._state.last_error,
        )
        self._throttle.dismiss_active()
        self._throttle.show(
            "error",
            f"Unable to reconnect to {self._app_name}. Please refresh the page.",
            self._failure_duration,
        )
