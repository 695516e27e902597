"""
SAA Notes Backend Application

FastAPI application entrypoint with async lifespan management.
Owns the shared Notion client for the lifetime of the process.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from saa_notes.api.v1.notes import router as notes_router
from saa_notes.core.config import settings
from saa_notes.core.logging import setup_logging
from saa_notes.core.notion import NotionClient

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Creates the shared NotionClient (connection pool)

    Shutdown:
        - Closes the client's connections
    """
    logger.info("Starting SAA Notes...")
    logger.info(f"Log Level: {settings.LOG_LEVEL}")

    app.state.notion_client = NotionClient()
    logger.info(f"Notion database: {settings.NOTION_DATABASE_ID}")

    yield  # Application runs here

    logger.info("Shutting down SAA Notes...")
    await app.state.notion_client.aclose()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.include_router(notes_router, prefix="/api/v1/notes", tags=["Notes"])


@app.get("/health")
async def health_check():
    """
    Health check endpoint for load balancers and orchestrators.

    Returns:
        Static status; Notion reachability is not checked.
    """
    return {
        "status": "ok",
        "service": "saa-notes",
        "environment": os.getenv("ENVIRONMENT", "unknown"),
        "notion_database": settings.NOTION_DATABASE_ID,
    }
