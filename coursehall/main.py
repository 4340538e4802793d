"""
Coursehall Backend - FastAPI Application

Main entry point for the application.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coursehall.core.config import settings
from coursehall.core.database import close_db
from coursehall.core.http_client import close_http_client
from coursehall.core.logging_config import configure_logging
from coursehall.api.v1 import router as api_v1_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting Coursehall Backend (%s)", settings.ENVIRONMENT)
    if not settings.mux_configured:
        logger.warning("Mux credentials not set, video uploads are disabled")
    if not settings.mux_signing_configured:
        logger.warning("Mux signing key not set, signed playback is disabled")
    yield
    # Shutdown
    logger.info("Shutting down Coursehall Backend")
    await close_http_client()
    await close_db()


# Create FastAPI application
app = FastAPI(
    title="Coursehall Backend",
    description="Course platform backend: lesson playback, view limits and video processing.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Health status and environment info.
    """
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": "0.1.0",
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links.
    """
    return {
        "message": "Welcome to Coursehall Backend API",
        "docs": "/docs",
        "health": "/health",
    }
