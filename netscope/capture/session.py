"""Capture session: device binding, capture thread and state transitions."""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from ..config import NetscopeConfig
from ..errors import DeviceOpenError, ReadError, HandleCloseError, CaptureError
from ..processing.aggregator import StatsAggregator
from ..processing.dispatcher import BatchDispatcher, Batch
from ..processing.dissector import dissect
from .channel import EventChannel
from .handle import CaptureHandle, open_live

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Capture session states."""
    IDLE = "Idle"
    RUNNING = "Running"
    PAUSED = "Paused"


class CaptureSession:
    """
    Drives one capture thread over one device handle.

    Every frame read by the capture thread is dissected, counted by the
    aggregator and buffered by the dispatcher; flushed batches and status
    messages are posted to the event channel. All state transitions happen
    under one lock on the controlling thread. The capture thread only reads
    the stop flag.

    States:
        IDLE    -> RUNNING  start()
        RUNNING -> PAUSED   pause()   (handle stays open)
        PAUSED  -> RUNNING  start()   (handle reused if the device is unchanged)
        RUNNING/PAUSED -> IDLE  stop()
    """

    JOIN_TIMEOUT = 5.0
    ERROR_BACKOFF = 0.1

    def __init__(
        self,
        channel: Optional[EventChannel] = None,
        config: Optional[NetscopeConfig] = None,
        opener: Callable[..., CaptureHandle] = open_live,
        aggregator: Optional[StatsAggregator] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or NetscopeConfig()
        self.channel = channel or EventChannel()
        self.aggregator = aggregator or StatsAggregator()
        self._opener = opener

        self._dispatcher = BatchDispatcher(
            on_flush=self._on_flush,
            max_batch_size=self.config.batch.max_batch_size,
            max_buffer_time=self.config.batch.max_buffer_time,
            clock=clock,
        )

        self._state = SessionState.IDLE
        self._device: Optional[str] = None
        self._handle: Optional[CaptureHandle] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_flag = threading.Event()
        self._lock = threading.RLock()

        # Written by the capture thread only
        self._delivered = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def device(self) -> Optional[str]:
        return self._device

    @property
    def packets_delivered(self) -> int:
        return self._delivered

    def is_running(self) -> bool:
        """Check if capture is running."""
        return self._state is SessionState.RUNNING

    def start(self, device: str) -> None:
        """
        Start (or resume) capturing on device.

        Raises:
            DeviceOpenError: The device could not be opened; the session is IDLE
        """
        with self._lock:
            if self._state is SessionState.RUNNING:
                if device == self._device and not self._stop_flag.is_set():
                    return
                # Device change, or a loop left over from a failed pause/stop
                if not self._end_loop():
                    return
                if device != self._device:
                    self._close_handle()
            elif self._state is SessionState.PAUSED:
                if device != self._device or self._handle is None or not self._handle.is_open:
                    self._close_handle()
            else:
                self._delivered = 0

            resuming = self._handle is not None
            if not resuming:
                self._open(device)

            self._spawn()
            self._state = SessionState.RUNNING

        verb = "resumed" if resuming else "started"
        logger.info("Capture %s on %s", verb, device)
        self.channel.post_status(f"Capture {verb} - capturing: {device}")

    def pause(self) -> None:
        """Stop the capture loop but keep the device handle open."""
        with self._lock:
            if self._state is not SessionState.RUNNING:
                return
            if not self._end_loop():
                return
            self._state = SessionState.PAUSED

        logger.info("Capture paused on %s", self._device)
        self.channel.post_status("Capture paused")

    def stop(self) -> None:
        """Stop the capture loop and close the device handle."""
        with self._lock:
            if self._state is SessionState.IDLE:
                return
            if not self._end_loop():
                return
            self._close_handle()
            self._state = SessionState.IDLE
            device, self._device = self._device, None

        logger.info("Capture stopped on %s", device)
        self.channel.post_status("Capture stopped")

    def __enter__(self) -> "CaptureSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _open(self, device: str) -> None:
        cap = self.config.capture
        try:
            self._handle = self._opener(
                device,
                snapshot_length=cap.snapshot_length,
                promiscuous=cap.promiscuous,
                read_timeout_ms=cap.read_timeout_ms,
                bpf_filter=cap.bpf_filter,
            )
        except DeviceOpenError as e:
            self._handle = None
            self._device = None
            self._state = SessionState.IDLE
            self._report_error(e)
            raise
        self._device = device

    def _spawn(self) -> None:
        self._stop_flag.clear()
        self._dispatcher.reset()
        self._thread = threading.Thread(
            target=self._capture_loop,
            args=(self._handle,),
            daemon=True,
            name=f"capture-{self._device}",
        )
        self._thread.start()

    def _end_loop(self) -> bool:
        """
        Signal the capture thread, wake its read and wait for it to exit.

        Returns False if the thread is still alive after JOIN_TIMEOUT. The
        thread is kept so that no second loop shares the dispatcher with it.
        """
        self._stop_flag.set()
        if self._handle is not None:
            self._handle.break_loop()

        if self._thread is not None:
            self._thread.join(timeout=self.JOIN_TIMEOUT)
            if self._thread.is_alive():
                logger.warning("Capture thread %s did not exit in time", self._thread.name)
                self.channel.post_status(f"Capture error: capture thread on {self._device} did not stop")
                return False
            self._thread = None
        return True

    def _close_handle(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            handle.close()
        except HandleCloseError as e:
            self._report_error(e)

    def _capture_loop(self, handle: CaptureHandle) -> None:
        """Read, dissect, count and buffer frames until the stop flag is set."""
        try:
            while not self._stop_flag.is_set():
                try:
                    frame = handle.next_frame()
                except ReadError as e:
                    if self._stop_flag.is_set():
                        break
                    self._report_error(e)
                    self._stop_flag.wait(self.ERROR_BACKOFF)
                    continue

                if frame is None:
                    continue

                record = dissect(frame.data, frame.length, frame.timestamp, frame.link_layer)
                self.aggregator.analyze(record)
                self._dispatcher.submit(record)
                self._dispatcher.maybe_flush()
        finally:
            self._dispatcher.force_flush()

    def _on_flush(self, batch: Batch) -> None:
        self._delivered += len(batch)
        self.channel.post_batch(batch)
        self.channel.post_status(f"Captured: {self._delivered} packets")

    def _report_error(self, error: CaptureError) -> None:
        logger.warning("%s", error)
        self.channel.post_status(f"Capture error: {error}")
