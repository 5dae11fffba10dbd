"""Connection resilience: failure detection, paced session rebuild and status messaging."""

from soly_client.resilience.backoff import BackoffScheduler
from soly_client.resilience.bridge import CacheInvalidationBridge
from soly_client.resilience.classifier import FailureClassifier
from soly_client.resilience.coordinator import ReconnectionCoordinator
from soly_client.resilience.manager import ResilienceManager
from soly_client.resilience.notifications import LoggingNotifier, NotificationThrottle, Notifier
from soly_client.resilience.observer import ConnectivityObserver
from soly_client.resilience.state import ConnectionStatus, ReconnectionPhase, ReconnectionState

__all__ = [
    "BackoffScheduler",
    "CacheInvalidationBridge",
    "ConnectionStatus",
    "ConnectivityObserver",
    "FailureClassifier",
    "LoggingNotifier",
    "NotificationThrottle",
    "Notifier",
    "ReconnectionCoordinator",
    "ReconnectionPhase",
    "ReconnectionState",
    "ResilienceManager",
]
