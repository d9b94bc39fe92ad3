"""
FastAPI application entry point for the Sales Performance Engine API.

Configures logging from settings, manages the asyncpg pool lifecycle,
configures CORS and registers the analytics and forecast routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from perf_engine import __version__
from perf_engine.api import api_router
from perf_engine.core.config import get_settings
from perf_engine.core.database import close_db, init_db

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown.

    The analytics endpoints do not need the database, so startup continues
    when the pool cannot be created; persistence endpoints then report 503.
    """
    logger.info("Sales Performance Engine API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("Sales Performance Engine API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


app = FastAPI(
    title="Sales Performance Engine API",
    version=__version__,
    description=(
        "Per-rep performance analytics (lead-mix adjusted expectations, "
        "catch-up targets, activity recommendations) and month-end "
        "quota forecasting."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Sales Performance Engine API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "perf_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
