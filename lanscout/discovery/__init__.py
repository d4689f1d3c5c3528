"""
Device discovery module for lanscout.

Finds hosts and printers on the local subnet by combining an active
sweep with mDNS service advertisements.
"""

from .exceptions import DiscoveryError, LanscoutError, ResolverInitError
from .merge import merge_results
from .models import (
    UNKNOWN_NAME,
    Advertisement,
    Device,
    HostClass,
    ProbeResult,
    ResultSet,
    SweepHit,
)
from .service import DiscoveryService, get_discovery_service

__all__ = [
    "UNKNOWN_NAME",
    "Advertisement",
    "Device",
    "DiscoveryError",
    "DiscoveryService",
    "HostClass",
    "LanscoutError",
    "ProbeResult",
    "ResolverInitError",
    "ResultSet",
    "SweepHit",
    "get_discovery_service",
    "merge_results",
]
