"""
lanscout - Local Network Discovery Server

The main FastAPI application entry point.
"""

# Load .env file FIRST, before any other imports
from pathlib import Path
from dotenv import load_dotenv
_env_root = Path(__file__).parent.parent
load_dotenv(_env_root / ".env")

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .api import router as api_router
from .config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.effective_log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("lanscout.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("lanscout starting up...")
    logger.info(
        "Sweep subnet=%s ports=%s concurrency=%d, mDNS=%s, SNMP=%s",
        settings.sweep.subnet,
        settings.sweep.candidate_ports,
        settings.sweep.max_concurrency,
        "on" if settings.mdns.enabled else "off",
        "on" if settings.snmp.enabled else "off",
    )
    yield
    logger.info("lanscout shutting down")


app = FastAPI(
    title="lanscout",
    description="Local network device and printer discovery",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api")
