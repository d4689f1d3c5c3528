"""
Data models for discovered devices.
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

# Name used when nothing better can be resolved
UNKNOWN_NAME = "unknown"


def address_key(address: str) -> ipaddress.IPv4Address:
    """Sort key ordering dotted-quad strings numerically."""
    return ipaddress.IPv4Address(address)


class HostClass(str, Enum):
    """Classification outcome for an alive host."""

    GENERIC = "generic"
    PRINTER = "printer"


@dataclass(frozen=True)
class Device:
    """A device found on the network, keyed by its address."""

    address: str
    name: str = UNKNOWN_NAME
    source: str = "sweep"  # "sweep" or "mdns"

    def to_dict(self) -> dict[str, Any]:
        return {"ip": self.address, "name": self.name}


@dataclass
class Advertisement:
    """One advertised service instance and every IPv4 address it announced."""

    name: str
    addresses: list[str] = field(default_factory=list)
    service_type: Optional[str] = None

    def add_address(self, address: str) -> None:
        if address not in self.addresses:
            self.addresses.append(address)

    def to_devices(self) -> list[Device]:
        """Flatten into one Device per address."""
        return [Device(address=a, name=self.name, source="mdns") for a in self.addresses]

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "ip": list(self.addresses)}


@dataclass
class ProbeResult:
    """What the probes learned about one address during a sweep."""

    address: str
    alive: bool = False
    open_ports: frozenset[int] = frozenset()
    fingerprint: bool = False
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class SweepHit:
    """An alive host emitted by the sweep, with its classification."""

    device: Device
    host_class: HostClass
    open_ports: frozenset[int] = frozenset()
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def address(self) -> str:
        return self.device.address

    @property
    def is_printer(self) -> bool:
        return self.host_class is HostClass.PRINTER


class ResultSet:
    """
    Address-keyed collection of devices.

    The first device added for an address is kept; later adds for the
    same address are ignored. Sources with precedence must be added first.
    """

    def __init__(self, devices: Iterable[Device] = ()):
        self._devices: dict[str, Device] = {}
        for device in devices:
            self.add(device)

    def add(self, device: Device) -> bool:
        """Add a device unless its address is already present."""
        if device.address in self._devices:
            return False
        self._devices[device.address] = device
        return True

    def get(self, address: str) -> Optional[Device]:
        return self._devices.get(address)

    def devices(self) -> list[Device]:
        """Devices sorted by numeric address."""
        return sorted(self._devices.values(), key=lambda d: address_key(d.address))

    def addresses(self) -> set[str]:
        return set(self._devices)

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, address: object) -> bool:
        return address in self._devices

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultSet):
            return NotImplemented
        return self._devices == other._devices

    def __repr__(self) -> str:
        return f"ResultSet({len(self)} devices)"
