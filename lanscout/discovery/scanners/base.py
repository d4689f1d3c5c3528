"""
Base scanner protocol for device discovery.

All network scanners must implement this interface.
"""

from abc import ABC, abstractmethod


class BaseScanner(ABC):
    """
    Abstract base class for network scanners.

    Scanners detect devices on the local network using one discovery
    method each (active sweep, mDNS, ...).
    """

    @property
    @abstractmethod
    def protocol_name(self) -> str:
        """Name of the discovery method (e.g., 'sweep', 'mdns')."""
        ...

    @abstractmethod
    async def scan(self) -> list:
        """
        Run one collection pass and return what was found.

        Implementations may accept extra optional arguments; calling
        scan() with none must use their configured defaults.
        """
        ...

    async def is_available(self) -> bool:
        """
        Check if this scanner can run with the current configuration.

        Override if the scanner can be switched off.
        """
        return True
