"""Jittered exponential backoff for reconnection attempts."""

from __future__ import annotations

import random
from typing import Callable, Optional

from soly_client.config import ClientSettings


class BackoffScheduler:
    """Computes ``min(base * 2**(n-1) + uniform(0, jitter), cap)`` in seconds."""

    def __init__(
        self,
        *,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        jitter: float = 1.0,
        uniform: Optional[Callable[[float, float], float]] = None,
    ) -> None:
        if base_delay <= 0 or max_delay <= 0:
            raise ValueError("Backoff delays must be positive")
        if jitter < 0:
            raise ValueError("Backoff jitter must be non-negative")
        self._base_delay = float(base_delay)
        self._max_delay = float(max_delay)
        self._jitter = float(jitter)
        self._uniform = uniform or random.uniform

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> BackoffScheduler:
        return cls(
            base_delay=settings.reconnect_base_delay_ms / 1000,
            max_delay=settings.reconnect_max_delay_ms / 1000,
            jitter=settings.reconnect_jitter_ms / 1000,
        )

    def delay(self, attempt: int) -> float:
        if attempt < 1:
            raise ValueError(f"Backoff attempt must be >= 1, got {attempt}")
        jitter = self._uniform(0, self._jitter) if self._jitter else 0.0
        return min(self._base_delay * (2 ** (attempt - 1)) + jitter, self._max_delay)
