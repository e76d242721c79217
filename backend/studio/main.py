"""
Dodge & Burn Studio Backend API.

FastAPI application with endpoints for:
- Running retouch wizard sessions (upload, dodge & burn, color harmonization)
- Serving previews of uploaded images
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studio.api import previews, sessions
from studio.core.config import settings
from studio.sessions import session_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: a missing credential is fatal here
    settings.require_api_key()
    logger.info("Starting Dodge & Burn Studio API")
    logger.info(f"AI adapter: {settings.AI_ADAPTER_TYPE}")
    logger.info(f"Image model: {settings.GEMINI_IMAGE_MODEL}, text model: {settings.GEMINI_TEXT_MODEL}")

    session_store.get_adapter()

    yield

    # Shutdown
    session_store.clear()
    logger.info("Shutting down Dodge & Burn Studio API")


app = FastAPI(
    title="Dodge & Burn Studio API",
    description="Backend API for the AI dodge & burn and color harmonization wizard",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict to specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(sessions.router, prefix="/api")
app.include_router(previews.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Dodge & Burn Studio API is running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
