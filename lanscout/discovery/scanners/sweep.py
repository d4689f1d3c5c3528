"""
Active subnet sweep.

Probes every host address of an IPv4 network with a bounded number of
concurrent tasks, classifies each alive host and returns the hits once
every task has finished.
"""

import asyncio
import ipaddress
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Iterable, Optional

from ...config import SweepConfig, settings
from ..models import Device, HostClass, ProbeResult, SweepHit, UNKNOWN_NAME, address_key
from ..probes import (
    IDENTITY_PORT,
    classify,
    is_alive,
    probe_identity,
    probe_ports,
    resolve_hostname,
)
from ..snmp import SNMPCollector
from .base import BaseScanner

logger = logging.getLogger("lanscout.discovery.scanners.sweep")


class _HitCollector:
    """Per-sweep accumulator shared by the probe tasks."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._hits: dict[str, SweepHit] = {}

    async def add(self, hit: SweepHit) -> None:
        async with self._lock:
            self._hits.setdefault(hit.address, hit)

    def hits(self) -> list[SweepHit]:
        return sorted(self._hits.values(), key=lambda h: address_key(h.address))


class SubnetSweeper(BaseScanner):
    """
    Reachability and port sweep of a single IPv4 network.

    Every alive host produces a SweepHit carrying its classification;
    deciding which classes to report is left to the caller.
    """

    def __init__(
        self,
        config: Optional[SweepConfig] = None,
        snmp: Optional[SNMPCollector] = None,
    ):
        self._config = config or settings.sweep
        self._snmp = snmp

    @property
    def protocol_name(self) -> str:
        return "sweep"

    async def scan(self, network: Optional[str] = None) -> list[SweepHit]:
        """
        Sweep every host address of a network.

        Args:
            network: IPv4 network in CIDR notation (defaults to config)

        Returns:
            Hits for every alive host, sorted by address
        """
        net = ipaddress.IPv4Network(network or self._config.subnet, strict=False)
        addresses = [str(ip) for ip in net.hosts()]
        logger.info("Starting sweep of %s (%d addresses)", net, len(addresses))
        return await self.sweep(addresses)

    async def sweep(self, addresses: Iterable[str]) -> list[SweepHit]:
        """Probe the given addresses and wait for every task to finish."""
        addresses = list(addresses)
        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        collector = _HitCollector()
        # Blocking ICMP and reverse DNS calls get one thread per concurrent task
        executor = ThreadPoolExecutor(
            max_workers=self._config.max_concurrency,
            thread_name_prefix="lanscout-sweep",
        )

        async def _worker(address: str) -> None:
            async with semaphore:
                hit = await self.probe_host(address, executor=executor)
            if hit is not None:
                await collector.add(hit)

        try:
            results = await asyncio.gather(
                *(_worker(address) for address in addresses),
                return_exceptions=True,
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        for address, result in zip(addresses, results):
            if isinstance(result, BaseException):
                logger.warning("Probe of %s failed: %s", address, result)

        hits = collector.hits()
        printers = sum(1 for h in hits if h.is_printer)
        logger.info("Sweep complete: %d alive, %d printer-likely", len(hits), printers)
        return hits

    async def probe_host(
        self,
        address: str,
        executor: Optional[Executor] = None,
    ) -> Optional[SweepHit]:
        """
        Run the probe pipeline for one address.

        Args:
            address: IPv4 address to probe
            executor: Thread pool for blocking lookups (loop default if None)

        Returns:
            A SweepHit for an alive host, None for a dead one
        """
        cfg = self._config
        probe = ProbeResult(address=address)

        probe.alive = await is_alive(
            address,
            timeout=cfg.ping_timeout,
            method=cfg.ping_method,
            fallback_ports=cfg.fallback_ports,
            executor=executor,
        )
        host_class = classify(probe)
        if host_class is None:
            return None

        probe.open_ports = await probe_ports(address, cfg.candidate_ports, timeout=cfg.connect_timeout)
        if IDENTITY_PORT in probe.open_ports:
            probe.fingerprint = await probe_identity(
                address,
                port=IDENTITY_PORT,
                timeout=cfg.banner_timeout,
                read_size=cfg.banner_bytes,
            )
        host_class = classify(probe)

        name = UNKNOWN_NAME
        if cfg.resolve_hostnames:
            name = await resolve_hostname(address, timeout=cfg.resolve_timeout, executor=executor)
        logger.debug(
            "%s alive as %s (ports=%s, banner=%s)",
            address, host_class.value, sorted(probe.open_ports), probe.fingerprint,
        )

        if host_class is HostClass.PRINTER and self._snmp is not None:
            probe.attributes = await self._snmp.collect(address)
            if probe.attributes:
                logger.info("SNMP attributes for %s: %s", address, probe.attributes)

        return SweepHit(
            device=Device(address=address, name=name, source="sweep"),
            host_class=host_class,
            open_ports=probe.open_ports,
            attributes=probe.attributes,
        )
