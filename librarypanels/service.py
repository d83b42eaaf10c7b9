"""
Library Panels Service Entrypoint

FastAPI application exposing the library panel API. The routes are only
mounted while the LIBRARY_PANELS_ENABLED feature toggle is on.
"""
import logging

from fastapi import FastAPI

from librarypanels.api import library_panels
from librarypanels.config import LIBRARY_PANELS_ENABLED, LOG_FILE, LOG_LEVEL
from librarypanels.database import init_db
from shared.logging_config import setup_logging

logger = logging.getLogger(__name__)

app = FastAPI(title="Library Panels Service")

if LIBRARY_PANELS_ENABLED:
    app.include_router(library_panels.router)


@app.on_event("startup")
def startup_init():
    """Configure logging and create tables"""
    setup_logging("librarypanels", level=getattr(logging, LOG_LEVEL, logging.INFO), log_file=LOG_FILE)
    init_db()
    if not LIBRARY_PANELS_ENABLED:
        logger.warning("Library panels feature toggle is off; API routes are not mounted")
    logger.info("Library panels service startup complete")


@app.get("/")
def root():
    return {
        "service": "librarypanels",
        "enabled": LIBRARY_PANELS_ENABLED,
    }
