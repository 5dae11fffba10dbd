"""Backend session handle and its cache-backed provider."""

from soly_client.session.base import BackendSession
from soly_client.session.dummy import DummySession
from soly_client.session.provider import SessionFactory, SessionProvider

__all__ = ["BackendSession", "DummySession", "SessionFactory", "SessionProvider"]
