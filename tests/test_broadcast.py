import pytest

from client.broadcast import BroadcastHub
from client.events import AUTH_FAILURE, AuthEventBus


def test_message_reaches_peers_but_not_sender():
    hub = BroadcastHub()
    a, b, c = hub.open("LOGOUT_CHANNEL"), hub.open("LOGOUT_CHANNEL"), hub.open("OTHER")
    got = {"a": [], "b": [], "c": []}
    a.add_listener(got["a"].append)
    b.add_listener(got["b"].append)
    c.add_listener(got["c"].append)

    assert a.post_message("logout") == 1
    assert got == {"a": [], "b": ["logout"], "c": []}


def test_closed_channel_neither_sends_nor_receives():
    hub = BroadcastHub()
    a, b = hub.open("ch"), hub.open("ch")
    received = []
    b.add_listener(received.append)
    b.close()
    assert a.post_message("x") == 0
    assert received == []
    with pytest.raises(RuntimeError):
        b.post_message("x")


def test_failing_listener_does_not_block_others():
    hub = BroadcastHub()
    a, b = hub.open("ch"), hub.open("ch")
    received = []

    def boom(message):
        raise ValueError(message)

    b.add_listener(boom)
    b.add_listener(received.append)
    a.post_message("hello")
    assert received == ["hello"]


def test_remove_listener():
    hub = BroadcastHub()
    a, b = hub.open("ch"), hub.open("ch")
    received = []
    b.add_listener(received.append)
    b.remove_listener(received.append)
    a.post_message("x")
    assert received == []


def test_event_bus_on_off_emit():
    bus = AuthEventBus()
    calls = []

    def listener():
        calls.append(1)

    bus.on(AUTH_FAILURE, listener)
    bus.emit(AUTH_FAILURE)
    assert calls == [1]
    assert bus.listener_count(AUTH_FAILURE) == 1

    bus.off(AUTH_FAILURE, listener)
    bus.emit(AUTH_FAILURE)
    assert calls == [1]
    assert bus.listener_count(AUTH_FAILURE) == 0


def test_event_buses_are_independent():
    one, two = AuthEventBus(), AuthEventBus()
    calls = []
    one.on(AUTH_FAILURE, lambda: calls.append("one"))
    two.emit(AUTH_FAILURE)
    assert calls == []
