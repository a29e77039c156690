"""
Best-effort protocol dissection of raw frames.

Frames are decoded with scapy and read outer to inner (network, transport,
application). Each layer is a small extractor that returns the record fields
it could read; a layer that is missing or was cut short on the wire
contributes nothing and its fields keep their defaults. dissect() never
raises on malformed or truncated input and keeps no state, so it can be
called from any thread.
"""

import time
from typing import Any, Dict, Optional, Type

from scapy.all import (
    Ether, IP, IPv6, TCP, UDP, ARP,
    IPv6ExtHdrHopByHop, IPv6ExtHdrRouting, IPv6ExtHdrDestOpt,
)
from scapy.packet import Packet, NoPayload, Padding

from ..models.record import PacketRecord, make_record

IP_PROTO_NAMES = {
    1: "ICMP",
    2: "IGMP",
    6: "TCP",
    17: "UDP",
    47: "GRE",
    50: "ESP",
    51: "AH",
    58: "ICMPV6",
    89: "OSPF",
    132: "SCTP",
}

# IPv6 extension headers skipped on the way to the upper-layer protocol
IPV6_EXT_HEADERS = (IPv6ExtHdrHopByHop, IPv6ExtHdrRouting, IPv6ExtHdrDestOpt)

# Fixed header sizes that must be on the wire before a layer is trusted
IPV4_MIN_HEADER = 20
IPV6_HEADER = 40
ARP_IPV4_SIZE = 28
TCP_MIN_HEADER = 20
UDP_HEADER = 8

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")
HTTP_DETAIL_MAX = 50

# Whitespace and ASCII control characters trimmed around a payload
TRIM_CHARS = "".join(chr(c) for c in range(0x21))

Fields = Dict[str, Any]


def dissect(
    frame: Optional[bytes],
    length: Optional[int] = None,
    capture_time: Optional[float] = None,
    link_layer: Optional[Type[Packet]] = Ether,
) -> PacketRecord:
    """
    Decode a raw frame into a PacketRecord.

    Args:
        frame: Raw frame bytes including the link-layer header
        length: Wire length of the frame (defaults to len(frame))
        capture_time: Capture instant in epoch seconds (defaults to now)
        link_layer: Scapy class of the first header (Ether, CookedLinux, IP, ...)
    """
    data = bytes(frame) if frame is not None else b""
    if length is None:
        length = len(data)
    if capture_time is None:
        capture_time = time.time()

    fields: Fields = {}
    if data:
        try:
            pkt = (link_layer or Ether)(data)
            fields.update(_network_layer(pkt))

            tcp_payload = None
            if pkt.haslayer(TCP) or pkt.haslayer(UDP):
                transport, tcp_payload = _transport_layer(pkt)
                fields.update(transport)
            if tcp_payload:
                fields.update(_application_layer(tcp_payload))
        except Exception:
            # Whatever was read before the failure is kept
            pass

    return make_record(
        timestamp=capture_time,
        length=length,
        raw_frame=frame,
        **fields,
    )


def _on_wire(layer: Packet, size: int) -> bool:
    """Check that at least size bytes of layer were captured."""
    return len(layer.original or b"") >= size


def _network_layer(pkt: Packet) -> Fields:
    if pkt.haslayer(IP):
        ip = pkt[IP]
        if ip.ihl is None or not _on_wire(ip, max(IPV4_MIN_HEADER, ip.ihl * 4)):
            return {}
        return {"src_ip": ip.src, "dst_ip": ip.dst, "protocol": _ip_proto_name(ip.proto)}

    if pkt.haslayer(IPv6):
        ip6 = pkt[IPv6]
        if not _on_wire(ip6, IPV6_HEADER):
            return {}
        next_header = ip6.nh
        layer = ip6.payload
        while isinstance(layer, IPV6_EXT_HEADERS):
            next_header = layer.nh
            layer = layer.payload
        return {"src_ip": ip6.src, "dst_ip": ip6.dst, "protocol": _ip_proto_name(next_header)}

    if pkt.haslayer(ARP):
        arp = pkt[ARP]
        fields: Fields = {"protocol": "ARP"}
        # Ethernet/IPv4 ARP only
        if arp.ptype == 0x0800 and arp.plen == 4 and _on_wire(arp, ARP_IPV4_SIZE):
            fields["src_ip"] = arp.psrc
            fields["dst_ip"] = arp.pdst
        return fields

    return {}


def _ip_proto_name(ip_proto: int) -> str:
    return IP_PROTO_NAMES.get(ip_proto, f"IP-{ip_proto}")


def _transport_layer(pkt: Packet):
    """Returns (fields, tcp_payload). The payload is only set for TCP."""
    if pkt.haslayer(TCP):
        tcp = pkt[TCP]
        if not _on_wire(tcp, TCP_MIN_HEADER):
            return {}, None
        fields = {"src_port": tcp.sport, "dst_port": tcp.dport, "protocol": "TCP"}
        return fields, _payload_bytes(tcp)

    udp = pkt[UDP]
    if not _on_wire(udp, UDP_HEADER):
        return {}, None
    return {"src_port": udp.sport, "dst_port": udp.dport, "protocol": "UDP"}, None


def _payload_bytes(layer: Packet) -> bytes:
    # Wire bytes after the header; IP already split trailer padding off
    payload = layer.payload
    if isinstance(payload, (NoPayload, Padding)):
        return b""
    return payload.original or b""


def _application_layer(payload: bytes) -> Fields:
    """HTTP request/response line heuristic for TCP payloads."""
    try:
        text = payload.decode("ascii").strip(TRIM_CHARS)
    except UnicodeDecodeError:
        return {}

    first_line = text.split("\n", 1)[0].rstrip("\r")

    if text.startswith(HTTP_METHODS):
        parts = [token for token in first_line.split(" ") if token]
        if len(parts) >= 2:
            return {"protocol": "HTTP", "protocol_detail": f"{parts[0]} {parts[1]}"}
        return {}

    if text.startswith("HTTP/"):
        return {"protocol": "HTTP", "protocol_detail": first_line[:HTTP_DETAIL_MAX]}

    return {}
