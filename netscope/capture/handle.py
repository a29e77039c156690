"""Live capture handle using Scapy."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional, Type

from scapy.all import conf, Ether
from scapy.packet import Packet

from ..errors import DeviceOpenError, ReadError, HandleCloseError

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_LENGTH = 65536
DEFAULT_READ_TIMEOUT_MS = 50

# Longest single wait before the break flag is re-checked (seconds)
POLL_SLICE = 0.02


@dataclass(frozen=True)
class CapturedFrame:
    """One frame as read off the wire."""
    data: bytes
    length: int
    timestamp: float
    link_layer: Type[Packet] = Ether


class CaptureHandle:
    """
    Open binding to one network device.

    next_frame() waits at most read_timeout_ms for a frame, so a reader loop
    gets control back periodically even on a silent link. break_loop() wakes
    a pending read from another thread.
    """

    def __init__(
        self,
        device: str,
        socket,
        snapshot_length: int = DEFAULT_SNAPSHOT_LENGTH,
        read_timeout_ms: int = DEFAULT_READ_TIMEOUT_MS,
    ):
        self.device = device
        self.snapshot_length = snapshot_length
        self.read_timeout = read_timeout_ms / 1000.0
        self._socket = socket
        self._break = threading.Event()
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    def next_frame(self) -> Optional[CapturedFrame]:
        """
        Read the next frame.

        Returns:
            CapturedFrame, or None on timeout or after break_loop()

        Raises:
            ReadError: The underlying socket failed or the handle is closed
        """
        if self._closed:
            raise ReadError(f"Handle on {self.device} is closed", device=self.device)

        deadline = time.monotonic() + self.read_timeout
        while not self._break.is_set():
            remain = deadline - time.monotonic()
            if remain <= 0:
                return None

            try:
                ready = self._socket.select([self._socket], min(remain, POLL_SLICE))
                if not ready:
                    continue
                cls, data, ts = self._socket.recv_raw()
            except (OSError, ValueError) as e:
                raise ReadError(f"Read failed on {self.device}: {e}", device=self.device) from e

            if not data:
                return None

            return CapturedFrame(
                data=bytes(data[:self.snapshot_length]),
                length=len(data),
                timestamp=float(ts) if ts is not None else time.time(),
                link_layer=cls or Ether,
            )

        self._break.clear()
        return None

    def break_loop(self) -> None:
        """Wake a pending next_frame() call."""
        self._break.set()

    def close(self) -> None:
        """Close the handle. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._break.set()
        try:
            self._socket.close()
        except (OSError, ValueError) as e:
            raise HandleCloseError(f"Close failed on {self.device}: {e}", device=self.device) from e


def open_live(
    device: str,
    snapshot_length: int = DEFAULT_SNAPSHOT_LENGTH,
    promiscuous: bool = True,
    read_timeout_ms: int = DEFAULT_READ_TIMEOUT_MS,
    bpf_filter: str = "",
) -> CaptureHandle:
    """
    Open a live capture handle on device.

    Raises:
        DeviceOpenError: Missing privileges, unknown device, bad filter
    """
    conf.verb = 0

    try:
        socket = conf.L2listen(
            iface=device,
            promisc=promiscuous,
            filter=bpf_filter or None,
        )
    except Exception as e:
        raise DeviceOpenError(f"Cannot open {device}: {e}", device=device) from e

    logger.debug("Opened %s (snaplen=%d, promisc=%s)", device, snapshot_length, promiscuous)
    return CaptureHandle(
        device=device,
        socket=socket,
        snapshot_length=snapshot_length,
        read_timeout_ms=read_timeout_ms,
    )
