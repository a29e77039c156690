"""Size/time bounded batching of records."""

import logging
import time
from typing import Callable, List, Optional, Tuple

from ..errors import ConfigError
from ..models.record import PacketRecord

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 200
MAX_BUFFER_TIME = 0.3  # seconds

Batch = Tuple[PacketRecord, ...]


class BatchDispatcher:
    """
    Buffers records and hands them to a consumer in batches.

    A flush happens when the buffer holds max_batch_size records or when
    more than max_buffer_time seconds passed since the last flush, whichever
    comes first. The buffer is owned by a single thread (the capture
    thread); only flushed, already-copied batches leave it.
    """

    def __init__(
        self,
        on_flush: Optional[Callable[[Batch], None]] = None,
        max_batch_size: int = MAX_BATCH_SIZE,
        max_buffer_time: float = MAX_BUFFER_TIME,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            on_flush: Called with each flushed batch; must post and return
            max_batch_size: Flush once this many records are pending
            max_buffer_time: Flush once this many seconds passed since the last flush
            clock: Monotonic time source
        """
        if max_batch_size < 1:
            raise ConfigError(f"max_batch_size must be >= 1, got {max_batch_size}")
        if max_buffer_time < 0:
            raise ConfigError(f"max_buffer_time must be >= 0, got {max_buffer_time}")

        self.on_flush = on_flush
        self.max_batch_size = max_batch_size
        self.max_buffer_time = max_buffer_time
        self._clock = clock

        self._pending: List[PacketRecord] = []
        self._last_flush = clock()

        self.batches_flushed = 0
        self.records_flushed = 0

    def submit(self, record: PacketRecord) -> None:
        """Append a record to the pending buffer."""
        self._pending.append(record)

    def should_flush(self) -> bool:
        """Check the dual size/time trigger."""
        if len(self._pending) >= self.max_batch_size:
            return True
        return self._clock() - self._last_flush > self.max_buffer_time

    def maybe_flush(self) -> Batch:
        """Flush if a trigger fired. Returns the flushed batch or ()."""
        if not self.should_flush():
            return ()
        return self._flush()

    def force_flush(self) -> Batch:
        """Flush whatever is pending. Returns the flushed batch or ()."""
        return self._flush()

    def _flush(self) -> Batch:
        self._last_flush = self._clock()
        if not self._pending:
            return ()

        batch = tuple(self._pending)
        self._pending.clear()
        self.batches_flushed += 1
        self.records_flushed += len(batch)
        logger.debug("Flushing batch of %d records", len(batch))

        if self.on_flush is not None:
            self.on_flush(batch)
        return batch

    def reset(self) -> None:
        """Drop pending records and restart the flush timer."""
        self._pending.clear()
        self._last_flush = self._clock()

    @property
    def pending_count(self) -> int:
        return len(self._pending)
