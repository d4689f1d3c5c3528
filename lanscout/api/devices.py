"""
Device discovery endpoints.

Each request runs a full discovery and blocks until it completes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ..discovery import DiscoveryService, ResolverInitError, get_discovery_service

logger = logging.getLogger("lanscout.api.devices")

router = APIRouter(tags=["Devices"])


# --- Response Models ---


class DeviceOut(BaseModel):
    """A discovered device."""
    ip: str
    name: str


class ServiceOut(BaseModel):
    """An advertised service instance and its addresses."""
    name: str
    ip: list[str]


# --- Endpoints ---


@router.get("/devices", response_model=list[DeviceOut])
async def list_devices(service: DiscoveryService = Depends(get_discovery_service)):
    """List every device found by the sweep or by mDNS."""
    logger.info("Searching for active devices on the network...")
    try:
        devices = await service.discover_devices()
    except ResolverInitError as e:
        logger.error("Error searching for devices: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return [d.to_dict() for d in devices]


@router.get("/printers", response_model=list[DeviceOut])
async def list_printers(service: DiscoveryService = Depends(get_discovery_service)):
    """List devices that look like network printers."""
    logger.info("Searching for printers on the network...")
    try:
        printers = await service.discover_printers()
    except ResolverInitError as e:
        logger.error("Error searching for printers: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return [p.to_dict() for p in printers]


@router.get("/services", response_model=list[ServiceOut])
async def list_services(service: DiscoveryService = Depends(get_discovery_service)):
    """List mDNS-advertised service instances, one entry per instance."""
    logger.info("Browsing advertised services...")
    try:
        advertisements = await service.discover_services()
    except ResolverInitError as e:
        logger.error("Error browsing services: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return [ad.to_dict() for ad in advertisements]
