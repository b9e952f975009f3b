import ipaddress
from threading import Event

from node_ip_agent.pump import END_OF_STREAM, EventPump, EventQueue, OverflowPolicy
from node_ip_labels.events import AddressEvent, EventKind


def event(last_octet: int) -> AddressEvent:
    return AddressEvent(
        ipaddress.ip_address(f"10.0.0.{last_octet}"), EventKind.ADDED, 2
    )


def test_drop_oldest_keeps_newest_events():
    queue = EventQueue(2, OverflowPolicy.DROP_OLDEST)

    for octet in (1, 2, 3):
        assert queue.put(event(octet))

    assert queue.dropped == 1
    assert queue.get(timeout=0.1) == event(2)
    assert queue.get(timeout=0.1) == event(3)
    assert queue.get(timeout=0.01) is None


def test_block_gives_up_once_stopped():
    stop_event = Event()
    stop_event.set()
    queue = EventQueue(1, OverflowPolicy.BLOCK, stop_event=stop_event, poll_interval=0.01)

    assert queue.put(event(1))
    assert not queue.put(event(2))
    assert len(queue) == 1


def test_pump_marks_end_of_stream():
    queue = EventQueue(8)
    pump = EventPump(iter([event(1), event(2)]), queue, Event())

    pump.start()
    pump.join(timeout=1)

    assert queue.get(timeout=0.1) == event(1)
    assert queue.get(timeout=0.1) == event(2)
    assert queue.get(timeout=0.1) is END_OF_STREAM


def test_pump_survives_subscription_error(caplog):
    def broken():
        yield event(1)
        raise OSError("netlink socket closed")

    queue = EventQueue(8)
    pump = EventPump(broken(), queue, Event())

    pump.start()
    pump.join(timeout=1)

    assert queue.get(timeout=0.1) == event(1)
    assert queue.get(timeout=0.1) is END_OF_STREAM
    assert "subscription failed" in caplog.text
