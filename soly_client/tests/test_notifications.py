import logging

from soly_client.resilience.notifications import LoggingNotifier, NotificationThrottle, Notifier
from soly_client.resilience.state import ReconnectionState


class _RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.events = []
        self._next = 0

    def show(self, kind, text, *, duration=None):
        self._next += 1
        self.events.append(("show", kind, text, self._next))
        return self._next

    def dismiss(self, handle):
        self.events.append(("dismiss", handle))


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _throttle(notifier):
    clock = _Clock()
    state = ReconnectionState()
    return NotificationThrottle(notifier, state, cooldown=5.0, clock=clock), state, clock


def test_same_kind_is_throttled_within_cooldown():
    notifier = _RecordingNotifier()
    throttle, state, clock = _throttle(notifier)

    assert throttle.show("info", "Reconnecting (1/5)")
    clock.now += 2.0
    assert not throttle.show("info", "Reconnecting (2/5)")
    clock.now += 3.5
    assert throttle.show("info", "Reconnecting (3/5)")

    shown = [event[2] for event in notifier.events if event[0] == "show"]
    assert shown == ["Reconnecting (1/5)", "Reconnecting (3/5)"]
    assert state.last_notification_at == clock.now
    assert state.last_notification_kind == "info"


def test_new_message_dismisses_active_first():
    notifier = _RecordingNotifier()
    throttle, _, clock = _throttle(notifier)

    throttle.show("info", "Reconnecting", None)
    assert throttle.active == 1
    clock.now += 1.0
    assert throttle.show("success", "Reconnected", 3.0)

    assert notifier.events == [
        ("show", "info", "Reconnecting", 1),
        ("dismiss", 1),
        ("show", "success", "Reconnected", 2),
    ]
    assert throttle.active is None


def test_dismiss_active_is_idempotent():
    notifier = _RecordingNotifier()
    throttle, _, _ = _throttle(notifier)
    throttle.show("info", "Reconnecting", None)

    throttle.dismiss_active()
    throttle.dismiss_active()

    assert notifier.events.count(("dismiss", 1)) == 1


def test_notifier_errors_are_suppressed(caplog):
    class _Broken(Notifier):
        def show(self, kind, text, *, duration=None):
            raise RuntimeError("toast container missing")

        def dismiss(self, handle):
            raise RuntimeError("unreachable")

    throttle, state, _ = _throttle(_Broken())
    caplog.set_level(logging.WARNING)

    assert not throttle.show("error", "Unable to reconnect", 10.0)
    assert state.last_notification_at is None
    assert any("notifier show error" in record.getMessage() for record in caplog.records)


def test_logging_notifier_levels(caplog):
    caplog.set_level(logging.DEBUG)
    notifier = LoggingNotifier()

    first = notifier.show("info", "Reconnecting")
    second = notifier.show("error", "Unable to reconnect", duration=10.0)
    notifier.dismiss(first)

    assert second == first + 1
    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.INFO, logging.ERROR, logging.DEBUG]


def test_kind_change_is_not_throttled_but_repeats_are():
    notifier = _RecordingNotifier()
    throttle, state, clock = _throttle(notifier)

    assert throttle.show("info", "Reconnecting", None)
    clock.now += 1.0
    assert throttle.show("success", "Reconnected", 3.0)
    clock.now += 1.0
    assert not throttle.show("success", "Reconnected", 3.0)
    assert throttle.show("error", "Unable to reconnect", 10.0)
    clock.now += 1.0
    assert not throttle.show("error", "Unable to reconnect", 10.0)

    shown = [(event[1], event[2]) for event in notifier.events if event[0] == "show"]
    assert shown == [
        ("info", "Reconnecting"),
        ("success", "Reconnected"),
        ("error", "Unable to reconnect"),
    ]
    assert state.last_notification_kind == "error"
    assert state.last_notification_at == 102.0
