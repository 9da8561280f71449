"""
BulbFit FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bulbfit.api.routes import bulbs, options, sessions
from bulbfit.config import settings
from bulbfit.db import close_db, get_db
from bulbfit.services.sessions import session_store

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting BulbFit API...")
    if settings.catalog_base_url:
        logger.info(f"Sessions will query remote catalog {settings.catalog_base_url}")
    else:
        try:
            await get_db()
            logger.info("SQLite catalog initialized")
        except Exception as e:
            logger.warning(f"SQLite initialization failed: {e}")

    yield

    # Shutdown
    logger.info("Shutting down BulbFit API...")
    session_store.close_all()
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(options.router)
app.include_router(sessions.router)
app.include_router(bulbs.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "BulbFit API",
        "version": settings.api_version,
        "endpoints": {
            "options": "/fitment/options?level=years",
            "sessions": "/sessions",
            "bulb_link": "/bulbs/link?part_number=...",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
