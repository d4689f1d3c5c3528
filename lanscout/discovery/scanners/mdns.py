"""
mDNS (Multicast DNS) scanner.

Browses DNS-SD service types on the local network for a fixed window and
collects every advertised instance with its IPv4 addresses. Browsing the
DNS-SD meta type enumerates advertised service types and browses each of
them within the same window.
"""

import asyncio
import logging
from typing import Optional

from zeroconf import IPVersion, ServiceStateChange, Zeroconf
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from ...config import MDNSConfig, settings
from ..exceptions import ResolverInitError
from ..models import Advertisement
from .base import BaseScanner

logger = logging.getLogger("lanscout.discovery.scanners.mdns")

# DNS-SD service type enumeration (RFC 6763 section 9)
META_SERVICE_TYPE = "_services._dns-sd._udp.local."


def instance_name(name: str, service_type: str) -> str:
    """Strip the service type suffix from a full service name."""
    suffix = "." + service_type
    if name.endswith(suffix):
        return name[: -len(suffix)]
    return name


class _BrowseSession:
    """Browsers, pending resolutions and results of one scan."""

    def __init__(self, aiozc: AsyncZeroconf, resolve_timeout: float):
        self._aiozc = aiozc
        self._resolve_timeout_ms = int(resolve_timeout * 1000)
        self._browsers: list[AsyncServiceBrowser] = []
        self._browsed_types: set[str] = set()
        self._seen: set[str] = set()
        self._tasks: set[asyncio.Task] = set()
        self._results: dict[str, Advertisement] = {}

    def browse(self, service_type: str) -> None:
        if service_type in self._browsed_types:
            return
        self._browsed_types.add(service_type)
        logger.debug("mDNS: browsing %s", service_type)
        self._browsers.append(
            AsyncServiceBrowser(
                self._aiozc.zeroconf,
                [service_type],
                handlers=[self._on_service_state_change],
            )
        )

    def _on_service_state_change(
        self,
        zeroconf: Zeroconf,
        service_type: str,
        name: str,
        state_change: ServiceStateChange,
    ) -> None:
        if state_change != ServiceStateChange.Added:
            return

        if service_type == META_SERVICE_TYPE:
            # Each answer to the meta query is itself a service type
            self.browse(name)
            return

        if name in self._seen:
            return
        self._seen.add(name)
        logger.debug("mDNS: found service %s", name)

        task = asyncio.ensure_future(self._resolve(service_type, name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _resolve(self, service_type: str, name: str) -> None:
        info = AsyncServiceInfo(service_type, name)
        try:
            if not await info.async_request(self._aiozc.zeroconf, self._resolve_timeout_ms):
                logger.debug("mDNS: no answer resolving %s", name)
                return
        except Exception as e:
            logger.debug("Failed to resolve service %s: %s", name, e)
            return

        addresses = info.parsed_addresses(IPVersion.V4Only)
        if not addresses:
            logger.debug("No IPv4 addresses for service %s", name)
            return

        advertisement = Advertisement(
            name=instance_name(name, service_type),
            service_type=service_type,
        )
        for address in addresses:
            advertisement.add_address(address)
        self._results[name] = advertisement

    def results(self) -> list[Advertisement]:
        """Advertisements ordered by instance name, independent of arrival order."""
        ordered = sorted(self._results.items(), key=lambda item: (item[1].name, item[0]))
        return [advertisement for _, advertisement in ordered]

    async def close(self) -> None:
        """Drop unfinished resolutions and release the zeroconf instance."""
        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for browser in self._browsers:
            try:
                await browser.async_cancel()
            except Exception as e:
                logger.debug("Error cancelling browser: %s", e)
        await self._aiozc.async_close()


class MDNSScanner(BaseScanner):
    """
    mDNS/Zeroconf network scanner.

    Collects advertised service instances until the browse window closes.
    Instances that have not resolved by then are left out.
    """

    def __init__(self, config: Optional[MDNSConfig] = None):
        self._config = config or settings.mdns

    @property
    def protocol_name(self) -> str:
        return "mdns"

    async def is_available(self) -> bool:
        return self._config.enabled

    async def scan(
        self,
        service_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> list[Advertisement]:
        """
        Browse the network for advertised services.

        Args:
            service_type: Fully qualified DNS-SD type (defaults to config)
            timeout: Browse window in seconds (defaults to config)

        Returns:
            One Advertisement per resolved service instance

        Raises:
            ResolverInitError: If the zeroconf instance cannot be created
        """
        service_type = service_type or self._config.service_type
        timeout = self._config.browse_timeout if timeout is None else timeout
        logger.info("Starting mDNS scan for %s (timeout=%.1fs)", service_type, timeout)

        try:
            aiozc = AsyncZeroconf(ip_version=IPVersion.V4Only)
        except Exception as e:
            logger.error("mDNS resolver initialization failed: %s", e)
            raise ResolverInitError(e) from e

        session = _BrowseSession(aiozc, self._config.resolve_timeout)
        try:
            session.browse(service_type)
            await asyncio.sleep(timeout)
        finally:
            await session.close()

        results = session.results()
        logger.info("mDNS scan complete: found %d services", len(results))
        return results
