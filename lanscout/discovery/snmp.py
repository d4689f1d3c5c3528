"""
SNMP attribute collection for printer-likely hosts.

Issues one read-only GET per attribute. Each attribute succeeds or fails
on its own; the collector never raises.
"""

import asyncio
import logging
from typing import Optional

from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    get_cmd,
)
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from ..config import SNMPConfig, settings

logger = logging.getLogger("lanscout.discovery.snmp")

# Attribute name -> OID
PRINTER_OIDS = {
    "name": "1.3.6.1.2.1.1.5.0",  # sysName
    "model": "1.3.6.1.2.1.25.3.2.1.3.1",  # hrDeviceDescr
    "page_count": "1.3.6.1.2.1.43.10.2.1.4.1.1",  # prtMarkerLifeCount
    "toner_level": "1.3.6.1.2.1.43.11.1.1.9.1.1",  # prtMarkerSuppliesLevel
}

_EMPTY_VALUES = (NoSuchObject, NoSuchInstance, EndOfMibView)


class SNMPCollector:
    """Queries a fixed set of printer attributes over SNMP v2c."""

    def __init__(
        self,
        config: Optional[SNMPConfig] = None,
        oids: Optional[dict[str, str]] = None,
    ):
        self._config = config or settings.snmp
        self._oids = dict(oids or PRINTER_OIDS)

    @property
    def oids(self) -> dict[str, str]:
        return dict(self._oids)

    async def collect(self, address: str) -> dict[str, str]:
        """
        Fetch every configured attribute from one host.

        Args:
            address: IPv4 address of the SNMP agent

        Returns:
            Mapping of attribute name to value for the attributes that answered
        """
        attributes: dict[str, str] = {}
        snmp_engine = SnmpEngine()
        try:
            transport = await UdpTransportTarget.create(
                (address, self._config.port),
                timeout=self._config.timeout,
                retries=self._config.retries,
            )
            auth = CommunityData(self._config.community, mpModel=1)

            for attr, oid in self._oids.items():
                value = await self._get(snmp_engine, auth, transport, address, attr, oid)
                if value is not None:
                    attributes[attr] = value
        except Exception as e:
            logger.debug("SNMP session to %s failed: %s", address, e)
        finally:
            snmp_engine.close_dispatcher()

        return attributes

    async def _get(self, snmp_engine, auth, transport, address: str, attr: str, oid: str) -> Optional[str]:
        # Hard ceiling above pysnmp's own timeout/retry budget
        ceiling = self._config.timeout * (self._config.retries + 1) + 1.0
        try:
            error_indication, error_status, error_index, var_binds = await asyncio.wait_for(
                get_cmd(
                    snmp_engine,
                    auth,
                    transport,
                    ContextData(),
                    ObjectType(ObjectIdentity(oid)),
                    lookupMib=False,
                ),
                timeout=ceiling,
            )
        except Exception as e:
            logger.debug("SNMP %s (%s) from %s failed: %s", attr, oid, address, e)
            return None

        if error_indication:
            logger.debug("SNMP %s from %s: %s", attr, address, error_indication)
            return None
        if error_status:
            logger.debug(
                "SNMP %s from %s: %s at %s",
                attr, address, error_status.prettyPrint(), error_index,
            )
            return None

        for _, value in var_binds:
            if isinstance(value, _EMPTY_VALUES):
                return None
            text = value.prettyPrint()
            if text:
                return text
        return None
