"""
Network scanners for device discovery.

Each scanner implements one discovery method:
- Sweep: reachability and port probing of every address in a subnet
- mDNS: Multicast DNS / DNS-SD service advertisements
"""

from .base import BaseScanner
from .mdns import MDNSScanner
from .sweep import SubnetSweeper

__all__ = [
    "BaseScanner",
    "MDNSScanner",
    "SubnetSweeper",
]
