import threading

from netscope.capture.channel import EventChannel, BatchEvent, StatusEvent
from netscope.models.record import make_record


class RecordingListener:
    def __init__(self):
        self.events = []

    def on_batch(self, records) -> None:
        self.events.append(("batch", records))

    def on_status_change(self, message: str) -> None:
        self.events.append(("status", message))


def test_events_arrive_in_post_order() -> None:
    channel = EventChannel()
    records = [make_record(1.0, 10), make_record(2.0, 20)]

    channel.post_status("Capture started - capturing: eth0")
    channel.post_batch(records)
    channel.post_status("Captured: 2 packets")

    listener = RecordingListener()
    assert channel.drain(listener) == 3
    assert listener.events == [
        ("status", "Capture started - capturing: eth0"),
        ("batch", tuple(records)),
        ("status", "Captured: 2 packets"),
    ]
    assert channel.pending == 0


def test_posted_batch_is_detached_from_caller_list() -> None:
    channel = EventChannel()
    records = [make_record(1.0, 10)]
    channel.post_batch(records)
    records.append(make_record(2.0, 20))

    event = channel.get()
    assert isinstance(event, BatchEvent)
    assert len(event.records) == 1


def test_get_on_empty_channel() -> None:
    channel = EventChannel()
    assert channel.get() is None
    assert channel.get(timeout=0.01) is None
    assert not channel.dispatch(RecordingListener())


def test_dispatch_waits_for_event_from_other_thread() -> None:
    channel = EventChannel()
    timer = threading.Timer(0.05, channel.post_status, args=("Capture paused",))
    timer.start()

    listener = RecordingListener()
    try:
        assert channel.dispatch(listener, timeout=2.0)
    finally:
        timer.cancel()

    assert listener.events == [("status", "Capture paused")]


def test_bounded_channel_drops_instead_of_blocking() -> None:
    channel = EventChannel(maxsize=2)
    channel.post_status("one")
    channel.post_status("two")
    channel.post_status("three")

    assert channel.dropped_events == 1
    assert channel.pending == 2

    event = channel.get()
    assert isinstance(event, StatusEvent)
    assert event.message == "one"
