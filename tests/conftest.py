import queue
import threading
import time

import pytest
from scapy.layers.inet import IP, TCP, UDP
from scapy.layers.l2 import Ether
from scapy.packet import Raw, raw

from netscope.capture.handle import CapturedFrame
from netscope.config import NetscopeConfig
from netscope.errors import DeviceOpenError, HandleCloseError, ReadError

SRC_MAC = "00:11:22:33:44:55"
DST_MAC = "66:77:88:99:aa:bb"


def ether():
    # Explicit MACs: scapy would otherwise try to resolve them
    return Ether(src=SRC_MAC, dst=DST_MAC)


def tcp_frame(payload=b"", sport=40000, dport=80, src="10.0.0.1", dst="10.0.0.2") -> bytes:
    pkt = ether() / IP(src=src, dst=dst) / TCP(sport=sport, dport=dport)
    if payload:
        pkt = pkt / Raw(load=payload)
    return raw(pkt)


def udp_frame(payload=b"", sport=5353, dport=5353, src="10.0.0.1", dst="10.0.0.2") -> bytes:
    pkt = ether() / IP(src=src, dst=dst) / UDP(sport=sport, dport=dport)
    if payload:
        pkt = pkt / Raw(load=payload)
    return raw(pkt)


def wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    """Scripted capture handle: frames are fed by the test."""

    def __init__(self, device, **options):
        self.device = device
        self.options = options
        self.is_open = True
        self.fail_close = False
        self.close_calls = 0
        self.break_calls = 0
        self.stall = False
        self.stalled = threading.Event()
        self.release = threading.Event()
        self._items = queue.Queue()
        self._seq = 0

    def feed(self, data: bytes, count: int = 1) -> None:
        for _ in range(count):
            self._seq += 1
            self._items.put(CapturedFrame(data=data, length=len(data), timestamp=float(self._seq)))

    def feed_error(self, message: str = "device hiccup") -> None:
        self._items.put(ReadError(message, device=self.device))

    def next_frame(self):
        if self.stall:
            # Simulates a read that ignores break_loop()
            self.stalled.set()
            self.release.wait(5.0)
        if not self.is_open:
            raise ReadError("closed", device=self.device)
        try:
            item = self._items.get(timeout=0.01)
        except queue.Empty:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def break_loop(self) -> None:
        self.break_calls += 1

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False
        if self.fail_close:
            raise HandleCloseError("close failed", device=self.device)


class FakeOpener:
    def __init__(self):
        self.handles = []
        self.failing = set()
        self._lock = threading.Lock()

    def __call__(self, device, **options):
        if device in self.failing:
            raise DeviceOpenError(f"Cannot open {device}: permission denied", device=device)
        handle = FakeHandle(device, **options)
        with self._lock:
            self.handles.append(handle)
        return handle

    @property
    def last(self) -> FakeHandle:
        return self.handles[-1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def opener():
    return FakeOpener()


@pytest.fixture
def slow_flush_config():
    """Config whose time trigger never fires during a test."""
    return NetscopeConfig.from_dict({"batch": {"max_batch_size": 200, "max_buffer_time": 60}})
