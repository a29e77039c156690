"""Network device enumeration."""

import socket
from dataclasses import dataclass, field
from typing import List, Optional, Dict

import psutil


@dataclass
class DeviceInfo:
    """A capturable network device."""
    name: str
    description: str = ""
    ipv4_addresses: List[str] = field(default_factory=list)
    mac_address: Optional[str] = None
    is_up: bool = False
    is_loopback: bool = False

    @property
    def ipv4_address(self) -> Optional[str]:
        """First IPv4 address, if any."""
        return self.ipv4_addresses[0] if self.ipv4_addresses else None

    def __str__(self) -> str:
        parts = [
            self.name,
            f"IP: {self.ipv4_address or 'No IPv4'}",
            f"MAC: {self.mac_address.upper() if self.mac_address else 'No MAC'}",
        ]
        if self.description and self.description != self.name:
            parts.append(f"Desc: {self.description}")
        return " | ".join(parts)


class InterfaceManager:
    """Lists network devices available for capture."""

    def __init__(self):
        self._devices: Dict[str, DeviceInfo] = {}
        self.refresh()

    def refresh(self) -> None:
        """Refresh the list of devices."""
        self._devices.clear()

        stats = psutil.net_if_stats()
        addrs = psutil.net_if_addrs()

        for name in sorted(set(stats) | set(addrs)):
            ipv4 = []
            mac = None

            for addr in addrs.get(name, []):
                if addr.family == socket.AF_INET:
                    ipv4.append(addr.address)
                elif addr.family == psutil.AF_LINK:
                    mac = addr.address

            stat = stats.get(name)
            self._devices[name] = DeviceInfo(
                name=name,
                description=name,
                ipv4_addresses=ipv4,
                mac_address=mac,
                is_up=bool(stat and stat.isup),
                is_loopback=name.lower().startswith("lo") or "127.0.0.1" in ipv4,
            )

    def get_all(self) -> List[DeviceInfo]:
        """Get all devices."""
        return list(self._devices.values())

    def get_active(self) -> List[DeviceInfo]:
        """Get devices that are up, addressed and not loopback."""
        return [
            dev for dev in self._devices.values()
            if dev.is_up and dev.ipv4_addresses and not dev.is_loopback
        ]

    def get_by_name(self, name: str) -> Optional[DeviceInfo]:
        return self._devices.get(name)

    def exists(self, name: str) -> bool:
        return name in self._devices

    def get_interface_names(self) -> List[str]:
        return list(self._devices.keys())
