"""
FastAPI application entry point for the cognitive engine service.

Configures logging and CORS, registers the cognitive router and manages the
snapshot database pool. The pool is only opened when DATABASE_URL is set;
without it the service analyzes the posted metrics alone.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cognitive_engine.api.cognitive import router as cognitive_router
from cognitive_engine.core.config import get_settings
from cognitive_engine.core.database import close_db, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Cognitive Engine API"
APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the snapshot pool on startup and close it on shutdown.

    A failed pool initialization is logged and startup continues: analysis
    works without history, only trends and persistence are lost.
    """
    settings = get_settings()
    logger.info(f"{APP_NAME} starting")

    if settings.snapshots_enabled:
        try:
            await init_db()
            logger.info("Snapshot database pool initialized")
        except Exception as e:
            logger.error(f"Failed to initialize snapshot database: {e}")
    else:
        logger.info("DATABASE_URL not set; trend enrichment and snapshot persistence disabled")

    yield

    logger.info(f"{APP_NAME} shutting down")
    if settings.snapshots_enabled:
        try:
            await close_db()
            logger.info("Snapshot database pool closed")
        except Exception as e:
            logger.error(f"Error closing snapshot database pool: {e}")


app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    description=(
        "Decision-support analytics for marketing and e-commerce metrics: "
        "financially quantified findings, strategic mode, growth bottleneck, "
        "budget reallocation and month-end pacing."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cognitive_router)  # Has its own /cognitive prefix


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cognitive_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
