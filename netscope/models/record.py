"""Packet record data structures."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

NO_ADDRESS = "N/A"
UNKNOWN_PROTOCOL = "UNKNOWN"
NO_PORT = -1

MIN_PORT = 0
MAX_PORT = 65535


@dataclass(frozen=True)
class PacketRecord:
    """
    One decoded packet.

    Records are immutable and always fully populated. Build them with
    make_record(), which applies the defaults for every optional field.
    """
    timestamp: float
    length: int
    src_ip: str = NO_ADDRESS
    dst_ip: str = NO_ADDRESS
    protocol: str = UNKNOWN_PROTOCOL
    src_port: int = NO_PORT
    dst_port: int = NO_PORT
    protocol_detail: str = ""
    raw_frame: Optional[bytes] = field(default=None, compare=False, repr=False)

    @property
    def has_ports(self) -> bool:
        """Check if the record carries transport-layer ports."""
        return self.src_port != NO_PORT and self.dst_port != NO_PORT

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary (raw frame not included)."""
        return {
            "timestamp": self.timestamp,
            "length": self.length,
            "src_ip": self.src_ip,
            "dst_ip": self.dst_ip,
            "protocol": self.protocol,
            "src_port": self.src_port,
            "dst_port": self.dst_port,
            "protocol_detail": self.protocol_detail,
        }


def _port(value: Optional[int]) -> int:
    if value is None:
        return NO_PORT
    try:
        port = int(value)
    except (TypeError, ValueError):
        return NO_PORT
    return port if MIN_PORT <= port <= MAX_PORT else NO_PORT


def make_record(
    timestamp: float,
    length: int,
    raw_frame: Optional[bytes] = None,
    src_ip: Optional[str] = None,
    dst_ip: Optional[str] = None,
    protocol: Optional[str] = None,
    src_port: Optional[int] = None,
    dst_port: Optional[int] = None,
    protocol_detail: Optional[str] = None,
) -> PacketRecord:
    """
    Create a PacketRecord, filling defaults for missing fields.

    None addresses become "N/A", a missing protocol becomes "UNKNOWN",
    ports outside 0-65535 become -1 and negative lengths are clamped to 0.
    """
    return PacketRecord(
        timestamp=timestamp,
        length=max(0, int(length)),
        src_ip=src_ip or NO_ADDRESS,
        dst_ip=dst_ip or NO_ADDRESS,
        protocol=protocol.upper() if protocol else UNKNOWN_PROTOCOL,
        src_port=_port(src_port),
        dst_port=_port(dst_port),
        protocol_detail=protocol_detail or "",
        raw_frame=raw_frame,
    )
