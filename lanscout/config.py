"""
Centralized configuration management using Pydantic Settings.

Configuration is loaded from environment variables with sensible defaults.
"""

import ipaddress

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SweepConfig(BaseSettings):
    """Active subnet sweep configuration."""

    model_config = SettingsConfigDict(env_prefix="LANSCOUT_SWEEP_")

    subnet: str = Field(default="192.168.1.0/24", description="IPv4 network to sweep")
    candidate_ports: list[int] = Field(
        default=[80, 443, 515, 631, 9100],
        description="TCP ports probed on every alive host",
    )
    ping_method: str = Field(default="auto", description="Reachability check: icmp, tcp or auto")
    ping_timeout: float = Field(default=1.0, gt=0, description="Reachability timeout in seconds")
    fallback_ports: list[int] = Field(
        default=[80, 443, 22],
        description="Ports dialled when ICMP is unavailable",
    )
    connect_timeout: float = Field(default=1.0, gt=0, description="Per-port connect timeout in seconds")
    banner_timeout: float = Field(default=1.0, gt=0, description="Banner read timeout in seconds")
    banner_bytes: int = Field(default=1024, ge=1, description="Max banner bytes read")
    max_concurrency: int = Field(default=64, ge=1, le=1024, description="Hosts probed at once")
    resolve_hostnames: bool = Field(default=True, description="Reverse-resolve alive hosts")
    resolve_timeout: float = Field(default=1.0, gt=0, description="Reverse lookup timeout in seconds")
    printer_label: str = Field(default="Possible printer", description="Name given to printer-likely hosts")

    @field_validator("subnet")
    @classmethod
    def validate_subnet(cls, v: str) -> str:
        network = ipaddress.ip_network(v, strict=False)
        if network.version != 4:
            raise ValueError(f"Only IPv4 subnets are supported: {v}")
        return str(network)

    @field_validator("ping_method")
    @classmethod
    def validate_ping_method(cls, v: str) -> str:
        v = v.lower()
        if v not in ("icmp", "tcp", "auto"):
            raise ValueError(f"Invalid ping method: {v}")
        return v


class MDNSConfig(BaseSettings):
    """mDNS / DNS-SD browsing configuration."""

    model_config = SettingsConfigDict(env_prefix="LANSCOUT_MDNS_")

    enabled: bool = Field(default=True, description="Enable mDNS browsing")
    service_type: str = Field(
        default="_services._dns-sd._udp.local.",
        description="Service type browsed for the generic device list",
    )
    printer_service_type: str = Field(
        default="_pdl-datastream._tcp.local.",
        description="Service type browsed for the printer list",
    )
    browse_timeout: float = Field(default=5.0, gt=0, description="Browse window in seconds")
    resolve_timeout: float = Field(default=2.0, gt=0, description="Per-service resolve timeout")


class SNMPConfig(BaseSettings):
    """SNMP enrichment configuration for printer-likely hosts."""

    model_config = SettingsConfigDict(env_prefix="LANSCOUT_SNMP_")

    enabled: bool = Field(default=True, description="Query printers over SNMP")
    community: str = Field(default="public", description="Read-only community string")
    port: int = Field(default=161, description="SNMP agent port")
    timeout: float = Field(default=2.0, gt=0, description="Request timeout in seconds")
    retries: int = Field(default=3, ge=0, le=10, description="Retries per request")


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_prefix="LANSCOUT_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # General
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=8080, description="HTTP port")

    # Nested configs
    sweep: SweepConfig = Field(default_factory=SweepConfig)
    mdns: MDNSConfig = Field(default_factory=MDNSConfig)
    snmp: SNMPConfig = Field(default_factory=SNMPConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def effective_log_level(self) -> str:
        """Debug mode forces DEBUG regardless of log_level."""
        return "DEBUG" if self.debug else self.log_level


# Singleton settings instance
settings = Settings()
