"""
Discovery Service - Orchestrates network device discovery.

Runs the mDNS browse and the subnet sweep side by side, merges their
results and applies the reporting policy of each public view.
"""

import asyncio
import contextlib
import logging
from typing import Optional

from ..config import settings
from .merge import merge_results
from .models import Advertisement, Device, SweepHit
from .scanners import MDNSScanner, SubnetSweeper
from .snmp import SNMPCollector

logger = logging.getLogger("lanscout.discovery.service")


class DiscoveryService:
    """
    Main discovery service that coordinates network scanning.

    Keeps no results between calls; every call is a fresh discovery.
    """

    def __init__(
        self,
        sweeper: Optional[SubnetSweeper] = None,
        mdns: Optional[MDNSScanner] = None,
        printer_label: Optional[str] = None,
    ):
        if sweeper is None:
            snmp = SNMPCollector(settings.snmp) if settings.snmp.enabled else None
            sweeper = SubnetSweeper(settings.sweep, snmp=snmp)
            if snmp is not None:
                logger.info("SNMP enrichment enabled")
        self._sweeper = sweeper
        self._mdns = mdns or MDNSScanner(settings.mdns)
        self._printer_label = printer_label if printer_label is not None else settings.sweep.printer_label

    async def discover_devices(self) -> list[Device]:
        """Every alive or advertised device on the network."""
        advertisements, hits = await self._collect(settings.mdns.service_type)
        advertised = [d for ad in advertisements for d in ad.to_devices()]
        merged = merge_results(advertised, (hit.device for hit in hits))
        logger.info(
            "Discovery complete: %d devices (%d advertised, %d swept)",
            len(merged), len(advertised), len(hits),
        )
        return merged.devices()

    async def discover_printers(self) -> list[Device]:
        """Advertised printers plus swept hosts classified as printers."""
        advertisements, hits = await self._collect(settings.mdns.printer_service_type)
        advertised = [d for ad in advertisements for d in ad.to_devices()]
        swept = [
            Device(address=hit.address, name=self._printer_label, source="sweep")
            for hit in hits
            if hit.is_printer
        ]
        merged = merge_results(advertised, swept)
        logger.info(
            "Printer discovery complete: %d printers (%d advertised, %d swept)",
            len(merged), len(advertised), len(swept),
        )
        return merged.devices()

    async def discover_services(self) -> list[Advertisement]:
        """Advertised service instances only, one entry per instance."""
        advertisements = await self._browse(settings.mdns.service_type)
        return sorted(advertisements, key=lambda ad: ad.name.lower())

    async def _browse(self, service_type: str) -> list[Advertisement]:
        if not await self._mdns.is_available():
            logger.debug("%s scanner disabled", self._mdns.protocol_name)
            return []
        return await self._mdns.scan(service_type=service_type)

    async def _collect(self, service_type: str) -> tuple[list[Advertisement], list[SweepHit]]:
        """Run the browse and the sweep concurrently and wait for both."""
        logger.info("Starting network scan...")
        sweep_task = asyncio.ensure_future(self._sweeper.scan())
        try:
            advertisements = await self._browse(service_type)
        except BaseException:
            sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await sweep_task
            raise
        hits = await sweep_task

        logger.info(
            "%s scanner found %d services, %s scanner found %d hosts",
            self._mdns.protocol_name.upper(), len(advertisements),
            self._sweeper.protocol_name.upper(), len(hits),
        )
        return advertisements, hits


# Global service instance
_discovery_service: Optional[DiscoveryService] = None


def get_discovery_service() -> DiscoveryService:
    """Get or create the global discovery service."""
    global _discovery_service
    if _discovery_service is None:
        _discovery_service = DiscoveryService()
    return _discovery_service
