"""Statistics data structures."""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time copy of aggregated traffic statistics."""
    protocol_counts: Dict[str, int] = field(default_factory=dict)
    port_traffic: Dict[int, int] = field(default_factory=dict)
    total_bytes: int = 0
    total_packets: int = 0

    def top_ports(self, n: int = 10) -> List[Tuple[int, int]]:
        """Get the n destination ports with the most bytes."""
        ranked = sorted(self.port_traffic.items(), key=lambda x: (-x[1], x[0]))
        return ranked[:n]

    def protocol_share(self, protocol: str) -> float:
        """Share of packets (percent) classified as protocol."""
        if self.total_packets == 0:
            return 0.0
        return (self.protocol_counts.get(protocol, 0) / self.total_packets) * 100
