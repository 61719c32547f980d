"""
NoteSync Backend Application

FastAPI entrypoint for the remote reconciliation service.
Handles the startup database check and graceful shutdown.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from notesync.api.v1.notes import router as notes_router
from notesync.core.config import settings
from notesync.core.database import engine
from notesync.core.logging import setup_logging

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)


async def wait_for_db(retries: int = 10, delay: int = 1) -> bool:
    """
    Wait for the database to become available.

    Useful in containerized environments where the database may start
    after the application. Implements retry logic with linear delay.

    Args:
        retries: Maximum connection attempts.
        delay: Seconds between attempts.

    Returns:
        True if connection established, False if all retries exhausted.
    """
    for i in range(retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                logger.info("Database connection established")
                return True
        except Exception as e:
            logger.warning(f"Waiting for database ({i + 1}/{retries})... Error: {e}")
            await asyncio.sleep(delay)

    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Validates database connectivity (required, blocks startup on failure)

    Shutdown:
        - Disposes the engine pool
    """
    logger.info("Starting NoteSync reconciliation service...")
    logger.info(f"Log Level: {settings.LOG_LEVEL}")

    if not await wait_for_db():
        logger.critical("Could not connect to the database. Shutting down.")
        raise RuntimeError("Database connection failed")

    yield  # Application runs here

    await engine.dispose()
    logger.info("Shutting down NoteSync reconciliation service...")


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.include_router(notes_router, prefix="/api/v1/notes", tags=["Notes"])


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers and orchestrators."""
    return {
        "status": "ok",
        "service": "notesync",
        "environment": os.getenv("ENVIRONMENT", "unknown"),
    }
