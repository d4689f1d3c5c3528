"""
Custom exceptions for the discovery engine.

Only failures that must reach the caller are raised; probe-level
failures are absorbed by the probes themselves.
"""


class LanscoutError(Exception):
    """Base exception for all lanscout errors."""

    pass


class DiscoveryError(LanscoutError):
    """Raised when a discovery run cannot be carried out."""

    pass


class ResolverInitError(DiscoveryError):
    """Raised when the mDNS resolver cannot be constructed."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"mDNS resolver initialization failed: {cause}")
