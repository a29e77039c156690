"""Event channel between the capture thread and a consumer."""

import logging
import time
from dataclasses import dataclass, field
from queue import Queue, Empty, Full
from typing import Optional, Protocol, Sequence, Tuple, Union

from ..models.record import PacketRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchEvent:
    """A flushed batch of records, in capture order."""
    records: Tuple[PacketRecord, ...]
    posted_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class StatusEvent:
    """A human-readable status message."""
    message: str
    posted_at: float = field(default_factory=time.time)


CaptureEvent = Union[BatchEvent, StatusEvent]


class CaptureListener(Protocol):
    """Consumer of capture events."""

    def on_batch(self, records: Sequence[PacketRecord]) -> None:
        ...

    def on_status_change(self, message: str) -> None:
        ...


class EventChannel:
    """
    Post-and-return message queue.

    The capture thread posts without blocking; the consumer pulls events on
    its own thread with get(), dispatch() or drain().
    """

    def __init__(self, maxsize: int = 0):
        self._queue: Queue = Queue(maxsize=maxsize)
        self.dropped_events = 0

    def post_batch(self, records: Sequence[PacketRecord]) -> None:
        self._post(BatchEvent(records=tuple(records)))

    def post_status(self, message: str) -> None:
        self._post(StatusEvent(message=message))

    def _post(self, event: CaptureEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except Full:
            self.dropped_events += 1
            logger.warning("Event channel full, dropped %s", type(event).__name__)

    def get(self, timeout: Optional[float] = None) -> Optional[CaptureEvent]:
        """Get next event, or None if nothing arrives within timeout."""
        try:
            if timeout is None:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def dispatch(self, listener: CaptureListener, timeout: Optional[float] = None) -> bool:
        """Deliver one event to listener. Returns False if none was available."""
        event = self.get(timeout)
        if event is None:
            return False
        _deliver(listener, event)
        return True

    def drain(self, listener: CaptureListener) -> int:
        """Deliver all pending events. Returns the number delivered."""
        delivered = 0
        while self.dispatch(listener):
            delivered += 1
        return delivered

    @property
    def pending(self) -> int:
        return self._queue.qsize()


def _deliver(listener: CaptureListener, event: CaptureEvent) -> None:
    if isinstance(event, BatchEvent):
        listener.on_batch(event.records)
    else:
        listener.on_status_change(event.message)
