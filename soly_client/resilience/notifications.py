"""User-visible connection status messages."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from itertools import count
from typing import Callable, Hashable, Optional

from soly_client.resilience.state import NotificationKind, ReconnectionState

LOGGER = logging.getLogger(__name__)

NotificationHandle = Hashable


class Notifier(ABC):
    """Sink for status messages. ``duration`` of ``None`` means persistent."""

    @abstractmethod
    def show(self, kind: NotificationKind, text: str, *, duration: Optional[float] = None) -> NotificationHandle:
        ...

    @abstractmethod
    def dismiss(self, handle: NotificationHandle) -> None:
        ...


class LoggingNotifier(Notifier):
    """Routes status messages to the application log."""

    _LEVELS = {"info": logging.INFO, "success": logging.INFO, "error": logging.ERROR}

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER
        self._ids = count(1)

    def show(self, kind: NotificationKind, text: str, *, duration: Optional[float] = None) -> NotificationHandle:
        handle = next(self._ids)
        self._logger.log(self._LEVELS.get(kind, logging.INFO), "[%s #%s] %s", kind, handle, text)
        return handle

    def dismiss(self, handle: NotificationHandle) -> None:
        self._logger.debug("Status message #%s dismissed", handle)


class NotificationThrottle:
    """Deduplicates status messages and owns at most one active (persistent) handle.

    A message is dropped when another message of the same kind was emitted
    within the cooldown window. Emitting any message dismisses the active one
    first, so a persistent "reconnecting" notice never outlives its outcome.
    """

    def __init__(
        self,
        notifier: Notifier,
        state: ReconnectionState,
        *,
        cooldown: float,
        clock: Callable[[], float],
    ) -> None:
        self._notifier = notifier
        self._state = state
        self._cooldown = float(cooldown)
        self._clock = clock
        self._active: Optional[NotificationHandle] = None

    @property
    def active(self) -> Optional[NotificationHandle]:
        return self._active

    def show(self, kind: NotificationKind, text: str, duration: Optional[float] = None) -> bool:
        """Emit ``text`` unless throttled; returns whether it was emitted."""

        now = self._clock()
        state = self._state
        if (
            state.last_notification_kind == kind
            and state.last_notification_at is not None
            and now - state.last_notification_at <= self._cooldown
        ):
            LOGGER.debug("Status message throttled kind=%s text=%s", kind, text)
            return False
        self.dismiss_active()
        try:
            handle = self._notifier.show(kind, text, duration=duration)
        except Exception:  # noqa: BLE001
            LOGGER.warning("Suppress notifier show error", exc_info=True)
            return False
        if duration is None:
            self._active = handle
        state.last_notification_at = now
        state.last_notification_kind = kind
        return True

    def dismiss_active(self) -> None:
        handle, self._active = self._active, None
        if handle is None:
            return
        try:
            self._notifier.dismiss(handle)
        except Exception:  # noqa: BLE001
            LOGGER.debug("Suppress notifier dismiss error", exc_info=True)
