"""Data models for netscope."""

from .record import PacketRecord, make_record, NO_ADDRESS, NO_PORT, UNKNOWN_PROTOCOL
from .stats import StatsSnapshot

__all__ = [
    "PacketRecord",
    "make_record",
    "NO_ADDRESS",
    "NO_PORT",
    "UNKNOWN_PROTOCOL",
    "StatsSnapshot",
]
