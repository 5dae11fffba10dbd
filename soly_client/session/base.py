"""Backend session abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BackendSession(ABC):
    """Live handle used to perform backend reads and writes."""

    @abstractmethod
    async def connect(self) -> None:
        ...

    @abstractmethod
    async def call(self, method: str, *args: Any) -> Any:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
