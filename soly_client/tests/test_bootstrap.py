import asyncio

import pytest

from soly_client.bootstrap import setup
from soly_client.config import ClientSettings
from soly_client.session import DummySession


class _FlakySession(DummySession):
    refuse_connect = 0

    async def connect(self) -> None:
        if _FlakySession.refuse_connect > 0:
            _FlakySession.refuse_connect -= 1
            raise ConnectionRefusedError("connection refused")
        await super().connect()


def _settings() -> ClientSettings:
    return ClientSettings(
        reconnect_base_delay_ms=1,
        reconnect_max_delay_ms=2,
        reconnect_jitter_ms=0,
        schedule_settle_ms=1,
        rebuild_settle_ms=0,
    )


@pytest.mark.asyncio
async def test_setup_creates_live_session():
    runtime = await setup(_settings(), session_factory=lambda _: DummySession({"getHabits": lambda: ["read"]}))
    try:
        session = await runtime.sessions.get()
        assert await session.call("getHabits") == ["read"]
        assert runtime.sessions.sessions_created == 1
        assert runtime.resilience.started
    finally:
        await runtime.stop()
    assert not session.connected
    assert not runtime.resilience.started


@pytest.mark.asyncio
async def test_initial_session_failure_triggers_reconnect():
    _FlakySession.refuse_connect = 1
    runtime = await setup(_settings(), session_factory=lambda _: _FlakySession())
    try:
        coordinator = runtime.resilience.coordinator
        assert coordinator.pending_task is not None
        for _ in range(100):
            if coordinator.episode_task is not None:
                break
            await asyncio.sleep(0.005)
        await coordinator.episode_task

        assert runtime.resilience.status.is_connected
        assert runtime.sessions.sessions_created == 1
        session = await runtime.sessions.get()
        assert session.connected
    finally:
        await runtime.stop()


@pytest.mark.asyncio
async def test_rebuild_replaces_and_closes_previous_session():
    created = []

    def _factory(_settings):
        session = DummySession()
        created.append(session)
        return session

    runtime = await setup(_settings(), session_factory=_factory)
    try:
        await runtime.resilience.coordinator.attempt(RuntimeError("Failed to fetch"))
        assert len(created) == 2
        assert not created[0].connected
        assert created[1].connected
        assert runtime.resilience.status.is_connected
    finally:
        await runtime.stop()


@pytest.mark.asyncio
async def test_session_that_fails_to_connect_is_closed():
    attempts = []

    class _Refusing(DummySession):
        closed = False

        async def connect(self) -> None:
            raise ConnectionRefusedError("connection refused")

        async def close(self) -> None:
            self.closed = True
            await super().close()

    def _factory(_settings):
        session = _Refusing()
        attempts.append(session)
        return session

    runtime = await setup(_settings(), session_factory=_factory)
    try:
        runtime.resilience.coordinator.cancel_pending()
        assert len(attempts) == 1
        assert attempts[0].closed
        assert runtime.sessions.sessions_created == 0
        with pytest.raises(ConnectionRefusedError):
            await runtime.sessions.get()
        assert all(session.closed for session in attempts)
    finally:
        await runtime.stop()
