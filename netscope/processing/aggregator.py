"""Thread-safe traffic statistics."""

from threading import Lock
from typing import Dict

from ..models.record import PacketRecord, NO_PORT
from ..models.stats import StatsSnapshot


class StatsAggregator:
    """
    Incremental protocol and port counters.

    analyze() is called by the capture thread for every record; any thread
    may read snapshots. All counters are guarded by one lock so a snapshot
    never observes a half-applied record.
    """

    def __init__(self):
        self._protocol_counts: Dict[str, int] = {}
        self._port_traffic: Dict[int, int] = {}
        self._total_bytes = 0
        self._total_packets = 0
        self._lock = Lock()

    def analyze(self, record: PacketRecord) -> None:
        """Update counters with one record."""
        with self._lock:
            proto = record.protocol
            self._protocol_counts[proto] = self._protocol_counts.get(proto, 0) + 1

            if record.dst_port != NO_PORT:
                port = record.dst_port
                self._port_traffic[port] = self._port_traffic.get(port, 0) + record.length

            self._total_bytes += record.length
            self._total_packets += 1

    def snapshot_protocol_distribution(self) -> Dict[str, int]:
        """Get protocol -> packet count."""
        with self._lock:
            return dict(self._protocol_counts)

    def snapshot_port_traffic(self) -> Dict[int, int]:
        """Get destination port -> cumulative bytes."""
        with self._lock:
            return dict(self._port_traffic)

    def total_bytes(self) -> int:
        with self._lock:
            return self._total_bytes

    def total_packets(self) -> int:
        with self._lock:
            return self._total_packets

    def snapshot(self) -> StatsSnapshot:
        """Get a consistent copy of all counters."""
        with self._lock:
            return StatsSnapshot(
                protocol_counts=dict(self._protocol_counts),
                port_traffic=dict(self._port_traffic),
                total_bytes=self._total_bytes,
                total_packets=self._total_packets,
            )

    def reset(self) -> None:
        """Clear all counters."""
        with self._lock:
            self._protocol_counts.clear()
            self._port_traffic.clear()
            self._total_bytes = 0
            self._total_packets = 0
