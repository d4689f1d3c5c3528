"""
Per-address network probes used by the subnet sweep.

Every probe is best-effort: failures of any kind are reported as a
negative result and never raised to the caller.
"""

import asyncio
import contextlib
import logging
import socket
from concurrent.futures import Executor
from typing import Iterable, Optional

import ping3
from ping3.errors import PingError

from .models import UNKNOWN_NAME, HostClass, ProbeResult

logger = logging.getLogger("lanscout.discovery.probes")

# Port whose unsolicited banner is used as a fingerprint
IDENTITY_PORT = 80

# Raw printing (JetDirect / AppSocket)
RAW_PRINT_PORT = 9100


async def _connect(address: str, port: int, timeout: float) -> Optional[bool]:
    """
    Open and immediately close a TCP connection.

    Returns:
        True if the connection was accepted, False if it was actively
        refused, None on timeout or any other error.
    """
    writer = None
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(address, port),
            timeout=timeout,
        )
        return True
    except ConnectionRefusedError:
        return False
    except (asyncio.TimeoutError, OSError):
        return None
    finally:
        if writer is not None:
            writer.close()
            with contextlib.suppress(Exception):
                await writer.wait_closed()


async def _icmp_ping(
    address: str,
    timeout: float,
    executor: Optional[Executor] = None,
) -> bool:
    """Send one ICMP echo; raises PermissionError when ICMP is not allowed."""
    loop = asyncio.get_running_loop()
    try:
        delay = await loop.run_in_executor(
            executor, lambda: ping3.ping(address, timeout=timeout)
        )
    except PermissionError:
        raise
    except (PingError, OSError) as e:
        logger.debug("ICMP ping to %s failed: %s", address, e)
        return False
    # ping3 returns None on timeout and False on error
    return delay is not None and delay is not False


async def _tcp_ping(address: str, timeout: float, ports: Iterable[int]) -> bool:
    """Treat any TCP answer, including a refusal, as proof of life."""
    for port in ports:
        if await _connect(address, port, timeout) is not None:
            return True
    return False


async def is_alive(
    address: str,
    timeout: float = 1.0,
    method: str = "auto",
    fallback_ports: Iterable[int] = (80, 443, 22),
    executor: Optional[Executor] = None,
) -> bool:
    """
    Check whether an address responds within the timeout.

    Args:
        address: IPv4 address to check
        timeout: Deadline for the check in seconds
        method: "icmp", "tcp" or "auto" (ICMP with TCP fallback)
        fallback_ports: Ports used by the TCP check
        executor: Thread pool for the blocking ICMP call (loop default if None)

    Returns:
        True if the host answered, False otherwise
    """
    if method == "tcp":
        return await _tcp_ping(address, timeout, fallback_ports)

    try:
        return await _icmp_ping(address, timeout, executor)
    except PermissionError as e:
        if method == "icmp":
            logger.debug("ICMP not permitted for %s: %s", address, e)
            return False
        return await _tcp_ping(address, timeout, fallback_ports)


async def probe_ports(
    address: str,
    ports: Iterable[int],
    timeout: float = 1.0,
) -> frozenset[int]:
    """Return the subset of ports that accepted a TCP connection."""
    ports = list(ports)
    results = await asyncio.gather(*(_connect(address, port, timeout) for port in ports))
    return frozenset(port for port, accepted in zip(ports, results) if accepted is True)


async def probe_identity(
    address: str,
    port: int = IDENTITY_PORT,
    timeout: float = 1.0,
    read_size: int = 1024,
) -> bool:
    """
    Read whatever the peer sends first and report whether it looks like a banner.

    This is a coarse presence signal only; the bytes are not parsed.
    """
    writer = None
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(address, port),
            timeout=timeout,
        )
        data = await asyncio.wait_for(reader.read(read_size), timeout=timeout)
    except (asyncio.TimeoutError, OSError) as e:
        logger.debug("No banner from %s:%d: %s", address, port, e)
        return False
    finally:
        if writer is not None:
            writer.close()
            with contextlib.suppress(Exception):
                await writer.wait_closed()

    banner = data.decode("utf-8", errors="ignore").strip()
    return bool(banner) and banner != UNKNOWN_NAME


async def resolve_hostname(
    address: str,
    timeout: float = 1.0,
    executor: Optional[Executor] = None,
) -> str:
    """Reverse-resolve an address, falling back to the unknown sentinel."""
    loop = asyncio.get_running_loop()
    try:
        hostname, _, _ = await asyncio.wait_for(
            loop.run_in_executor(executor, socket.gethostbyaddr, address),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.debug("Reverse lookup of %s timed out", address)
        return UNKNOWN_NAME
    except (socket.herror, socket.gaierror, OSError):
        return UNKNOWN_NAME
    return hostname.rstrip(".") or UNKNOWN_NAME


def classify(probe: ProbeResult) -> Optional[HostClass]:
    """
    Classify a probed address.

    Dead hosts yield None. An open raw-printing port or a positive
    fingerprint marks the host as a printer; any other alive host is generic.
    """
    if not probe.alive:
        return None
    if RAW_PRINT_PORT in probe.open_ports or probe.fingerprint:
        return HostClass.PRINTER
    return HostClass.GENERIC
