"""Classification of errors that indicate a dead backend session."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from soly_client.config.settings import DEFAULT_TRANSPORT_FAILURE_SIGNATURES


def error_text(error: Any) -> str:
    """Normalise an error-like value to lowercase text."""

    if error is None:
        return ""
    if isinstance(error, BaseException):
        return str(error).lower()
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message.lower()
    return str(error).lower()


class FailureClassifier:
    """Decides whether an error looks like a transport/session failure."""

    def __init__(self, signatures: Optional[Iterable[str]] = None) -> None:
        source = DEFAULT_TRANSPORT_FAILURE_SIGNATURES if signatures is None else signatures
        self._signatures = tuple(token.lower() for token in source if token)

    @property
    def signatures(self) -> tuple[str, ...]:
        return self._signatures

    def is_transport_failure(self, error: Any) -> bool:
        if not error:
            return False
        message = error_text(error)
        if not message:
            return False
        return any(token in message for token in self._signatures)
