"""
Intent Data Engine API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Intent Data Engine API",
    description="REST API for scoring contacts by purchase intent and exporting audiences",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins once the dashboard has a fixed deployment URL
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "intent-data-engine-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Intent Data Engine API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import audience, contacts, exports, settings

app.include_router(contacts.router, prefix="/api/v1", tags=["Contacts"])
app.include_router(audience.router, prefix="/api/v1", tags=["Audience"])
app.include_router(exports.router, prefix="/api/v1", tags=["Exports"])
app.include_router(settings.router, prefix="/api/v1", tags=["Settings"])


def run() -> None:
    """Serve the API with uvicorn; API_HOST and API_PORT override the bind address."""
    uvicorn.run(
        "api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
    )


if __name__ == "__main__":
    run()
