"""
Tests for the subnet sweep orchestrator.

Covers:
1. Classification scenario over a three-address range
2. Dead hosts never reported; port 9100 always means printer
3. Concurrency bounded by max_concurrency
4. Join: nothing is written after scan() returns
5. SNMP enrichment is a side channel and never changes classification
6. A crashing probe task does not break the sweep
7. Blocking ICMP and reverse DNS calls scale with max_concurrency and honour resolve_timeout
"""

import asyncio
import threading
import time
from contextlib import contextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from lanscout.config import SweepConfig
from lanscout.discovery.models import UNKNOWN_NAME, HostClass
from lanscout.discovery.scanners.sweep import SubnetSweeper

SWEEP = "lanscout.discovery.scanners.sweep"


# ---------------------------------------------------------------------------
# Fake network
# ---------------------------------------------------------------------------

@contextmanager
def fake_network(alive=(), ports=None, banners=(), delay=0.0):
    """Patch the probes used by the sweep with an in-memory network."""
    ports = ports or {}
    calls = {"identity": []}

    async def fake_is_alive(address, **kwargs):
        if delay:
            await asyncio.sleep(delay)
        return address in alive

    async def fake_probe_ports(address, candidate_ports, timeout=1.0):
        return frozenset(p for p in ports.get(address, ()) if p in candidate_ports)

    async def fake_probe_identity(address, **kwargs):
        calls["identity"].append(address)
        return address in banners

    with (
        patch(f"{SWEEP}.is_alive", side_effect=fake_is_alive),
        patch(f"{SWEEP}.probe_ports", side_effect=fake_probe_ports),
        patch(f"{SWEEP}.probe_identity", side_effect=fake_probe_identity),
        patch(f"{SWEEP}.resolve_hostname", AsyncMock(return_value=UNKNOWN_NAME)),
    ):
        yield calls


def _config(**overrides) -> SweepConfig:
    values = {"subnet": "10.0.0.0/24", "max_concurrency": 16}
    values.update(overrides)
    return SweepConfig(**values)


SCENARIO = {
    "alive": {"10.0.0.2", "10.0.0.3"},
    "ports": {"10.0.0.2": [80], "10.0.0.3": [9100]},
}


# ------------------------------------------------------------------
# Classification
# ------------------------------------------------------------------

class TestSweepClassification:
    @pytest.mark.asyncio
    async def test_three_host_scenario(self):
        sweeper = SubnetSweeper(_config())
        with fake_network(**SCENARIO):
            hits = await sweeper.sweep(["10.0.0.1", "10.0.0.2", "10.0.0.3"])

        generic = {h.address for h in hits}
        printers = {h.address for h in hits if h.is_printer}
        assert generic == {"10.0.0.2", "10.0.0.3"}
        assert printers == {"10.0.0.3"}

    @pytest.mark.asyncio
    async def test_unreachable_hosts_never_reported(self):
        sweeper = SubnetSweeper(_config())
        with fake_network(alive={"10.0.0.7"}, ports={"10.0.0.9": [9100]}):
            hits = await sweeper.scan("10.0.0.0/28")

        assert [h.address for h in hits] == ["10.0.0.7"]

    @pytest.mark.asyncio
    async def test_port_9100_is_printer_even_without_banner(self):
        sweeper = SubnetSweeper(_config())
        with fake_network(alive={"10.0.0.3"}, ports={"10.0.0.3": [80, 9100]}, banners=()):
            hits = await sweeper.sweep(["10.0.0.3"])

        assert hits[0].host_class is HostClass.PRINTER

    @pytest.mark.asyncio
    async def test_banner_on_port_80_is_printer(self):
        sweeper = SubnetSweeper(_config())
        with fake_network(alive={"10.0.0.4"}, ports={"10.0.0.4": [80]}, banners={"10.0.0.4"}):
            hits = await sweeper.sweep(["10.0.0.4"])

        assert hits[0].host_class is HostClass.PRINTER

    @pytest.mark.asyncio
    async def test_identity_probe_skipped_when_port_80_closed(self):
        sweeper = SubnetSweeper(_config())
        with fake_network(alive={"10.0.0.5"}, ports={"10.0.0.5": [443]}) as calls:
            hits = await sweeper.sweep(["10.0.0.5"])

        assert calls["identity"] == []
        assert hits[0].host_class is HostClass.GENERIC
        assert hits[0].open_ports == frozenset({443})

    @pytest.mark.asyncio
    async def test_scan_covers_every_host_of_a_24(self):
        sweeper = SubnetSweeper(_config(max_concurrency=64))
        seen = []

        async def record(address, **kwargs):
            seen.append(address)
            return False

        with patch(f"{SWEEP}.is_alive", side_effect=record):
            hits = await sweeper.scan()

        assert hits == []
        assert len(seen) == 254
        assert "10.0.0.0" not in seen and "10.0.0.255" not in seen

    @pytest.mark.asyncio
    async def test_hits_sorted_numerically(self):
        sweeper = SubnetSweeper(_config())
        alive = {"10.0.0.10", "10.0.0.9", "10.0.0.100"}
        with fake_network(alive=alive):
            hits = await sweeper.sweep(sorted(alive))

        assert [h.address for h in hits] == ["10.0.0.9", "10.0.0.10", "10.0.0.100"]

    @pytest.mark.asyncio
    async def test_hostname_resolution_can_be_disabled(self):
        sweeper = SubnetSweeper(_config(resolve_hostnames=False))
        resolver = AsyncMock(return_value="host.lan")
        with fake_network(alive={"10.0.0.2"}), patch(f"{SWEEP}.resolve_hostname", resolver):
            hits = await sweeper.sweep(["10.0.0.2"])

        resolver.assert_not_awaited()
        assert hits[0].device.name == UNKNOWN_NAME


# ------------------------------------------------------------------
# Concurrency and join
# ------------------------------------------------------------------

class TestSweepConcurrency:
    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        sweeper = SubnetSweeper(_config(max_concurrency=4))
        state = {"running": 0, "peak": 0}

        async def slow_is_alive(address, **kwargs):
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
            await asyncio.sleep(0.01)
            state["running"] -= 1
            return False

        with patch(f"{SWEEP}.is_alive", side_effect=slow_is_alive):
            await sweeper.sweep([f"10.0.0.{i}" for i in range(1, 41)])

        assert state["peak"] == 4

    @pytest.mark.asyncio
    async def test_result_does_not_change_after_return(self):
        sweeper = SubnetSweeper(_config(max_concurrency=8))
        alive = {f"10.0.0.{i}" for i in range(1, 30, 2)}
        with fake_network(alive=alive, delay=0.005):
            hits = await sweeper.sweep([f"10.0.0.{i}" for i in range(1, 30)])
            size = len(hits)
            await asyncio.sleep(0.05)

        assert size == len(alive)
        assert len(hits) == size

    @pytest.mark.asyncio
    async def test_failing_task_does_not_abort_sweep(self):
        sweeper = SubnetSweeper(_config())

        async def flaky(address, **kwargs):
            if address == "10.0.0.2":
                raise RuntimeError("boom")
            return True

        with fake_network(), patch(f"{SWEEP}.is_alive", side_effect=flaky):
            hits = await sweeper.sweep(["10.0.0.1", "10.0.0.2", "10.0.0.3"])

        assert [h.address for h in hits] == ["10.0.0.1", "10.0.0.3"]


# ------------------------------------------------------------------
# Blocking lookups (ICMP, reverse DNS)
# ------------------------------------------------------------------

class TestSweepBlockingCalls:
    @pytest.mark.asyncio
    async def test_icmp_parallelism_follows_max_concurrency(self):
        # 62 hosts, each echo blocks its thread for 0.2s
        sweeper = SubnetSweeper(_config(max_concurrency=64, ping_method="icmp", ping_timeout=0.2))
        threads = set()

        def blocking_ping(address, timeout=None, **kwargs):
            threads.add(threading.current_thread().name)
            time.sleep(0.2)
            return None

        loop = asyncio.get_running_loop()
        with patch("lanscout.discovery.probes.ping3.ping", side_effect=blocking_ping):
            started = loop.time()
            hits = await sweeper.scan("10.0.0.0/26")
            elapsed = loop.time() - started

        assert hits == []
        assert elapsed < 1.5
        assert all(name.startswith("lanscout-sweep") for name in threads)

    @pytest.mark.asyncio
    async def test_slow_reverse_lookup_does_not_stall_sweep(self):
        sweeper = SubnetSweeper(_config(resolve_timeout=0.1))

        def slow_lookup(address):
            time.sleep(1.0)
            return ("late.lan", [], [address])

        async def fake_is_alive(address, **kwargs):
            return True

        loop = asyncio.get_running_loop()
        with (
            patch(f"{SWEEP}.is_alive", side_effect=fake_is_alive),
            patch(f"{SWEEP}.probe_ports", AsyncMock(return_value=frozenset())),
            patch(f"{SWEEP}.probe_identity", AsyncMock(return_value=False)),
            patch("lanscout.discovery.probes.socket.gethostbyaddr", side_effect=slow_lookup),
        ):
            started = loop.time()
            hits = await sweeper.sweep(["10.0.0.1"])
            elapsed = loop.time() - started

        assert [(h.address, h.name) for h in hits] == [("10.0.0.1", UNKNOWN_NAME)]
        assert elapsed < 0.8


# ------------------------------------------------------------------
# SNMP enrichment
# ------------------------------------------------------------------

class TestSweepEnrichment:
    @pytest.mark.asyncio
    async def test_printers_are_enriched(self):
        snmp = MagicMock()
        snmp.collect = AsyncMock(return_value={"name": "lp1", "model": "M404", "page_count": "1200"})
        sweeper = SubnetSweeper(_config(), snmp=snmp)

        with fake_network(**SCENARIO):
            hits = await sweeper.sweep(["10.0.0.1", "10.0.0.2", "10.0.0.3"])

        snmp.collect.assert_awaited_once_with("10.0.0.3")
        printer = next(h for h in hits if h.address == "10.0.0.3")
        assert printer.attributes == {"name": "lp1", "model": "M404", "page_count": "1200"}
        assert printer.host_class is HostClass.PRINTER
        # The device record itself is not rewritten from SNMP data
        assert printer.device.name == UNKNOWN_NAME

    @pytest.mark.asyncio
    async def test_empty_enrichment_keeps_printer(self):
        snmp = MagicMock()
        snmp.collect = AsyncMock(return_value={})
        sweeper = SubnetSweeper(_config(), snmp=snmp)

        with fake_network(alive={"10.0.0.3"}, ports={"10.0.0.3": [9100]}):
            hits = await sweeper.sweep(["10.0.0.3"])

        assert hits[0].is_printer
        assert hits[0].attributes == {}

    @pytest.mark.asyncio
    async def test_generic_hosts_not_queried(self):
        snmp = MagicMock()
        snmp.collect = AsyncMock(return_value={})
        sweeper = SubnetSweeper(_config(), snmp=snmp)

        with fake_network(alive={"10.0.0.2"}, ports={"10.0.0.2": [80]}):
            await sweeper.sweep(["10.0.0.2"])

        snmp.collect.assert_not_awaited()
