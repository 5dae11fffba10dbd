"""Reconnection state shared by the coordinator and the connectivity observer."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Literal, Optional

NotificationKind = Literal["info", "success", "error"]


class ReconnectionPhase(enum.Enum):
    """Episode phase of the reconnection state machine."""

    IDLE = "IDLE"
    ATTEMPTING = "ATTEMPTING"
    EXHAUSTED = "EXHAUSTED"


@dataclass(frozen=True)
class ConnectionStatus:
    """Read-only snapshot handed to callers."""

    is_connected: bool
    is_reconnecting: bool
    attempt_count: int
    phase: ReconnectionPhase
    last_error: Optional[BaseException] = None


@dataclass
class ReconnectionState:
    """Process-wide reconnection bookkeeping, one instance per application session."""

    is_reconnecting: bool = False
    attempt_count: int = 0
    last_error: Optional[BaseException] = None
    is_connected: bool = True
    last_attempt_at: Optional[float] = None
    last_notification_at: Optional[float] = None
    last_notification_kind: Optional[NotificationKind] = None
    phase: ReconnectionPhase = ReconnectionPhase.IDLE

    def transition(self, next_phase: ReconnectionPhase) -> None:
        """Move into a new phase, validating allowed transitions."""

        if not self._is_valid_transition(self.phase, next_phase):
            raise ValueError(f"Invalid transition {self.phase.value} → {next_phase.value}")
        self.phase = next_phase

    def begin_attempt(self, error: BaseException, now: float) -> int:
        self.transition(ReconnectionPhase.ATTEMPTING)
        self.is_reconnecting = True
        self.is_connected = False
        self.attempt_count += 1
        self.last_error = error
        self.last_attempt_at = now
        return self.attempt_count

    def end_attempt(self) -> None:
        self.is_reconnecting = False

    def mark_connected(self) -> None:
        """Record a confirmed recovery; counters reset in the same update."""

        self.transition(ReconnectionPhase.IDLE)
        self.is_reconnecting = False
        self.attempt_count = 0
        self.last_error = None
        self.is_connected = True

    def mark_exhausted(self) -> None:
        self.transition(ReconnectionPhase.EXHAUSTED)
        self.is_reconnecting = False
        self.is_connected = False

    def snapshot(self) -> ConnectionStatus:
        return ConnectionStatus(
            is_connected=self.is_connected,
            is_reconnecting=self.is_reconnecting,
            attempt_count=self.attempt_count,
            phase=self.phase,
            last_error=self.last_error,
        )

    @staticmethod
    def _is_valid_transition(current: ReconnectionPhase, nxt: ReconnectionPhase) -> bool:
        allowed = {
            ReconnectionPhase.IDLE: {ReconnectionPhase.ATTEMPTING, ReconnectionPhase.EXHAUSTED},
            ReconnectionPhase.ATTEMPTING: {
                ReconnectionPhase.ATTEMPTING,
                ReconnectionPhase.IDLE,
                ReconnectionPhase.EXHAUSTED,
            },
            ReconnectionPhase.EXHAUSTED: {ReconnectionPhase.EXHAUSTED, ReconnectionPhase.IDLE},
        }
        return nxt in allowed.get(current, set())
