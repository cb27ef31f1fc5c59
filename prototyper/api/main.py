"""
FastAPI application entry point.

Wires the session, model-selection and pipeline routes around a shared
BackendManager and the packaged default prompts.
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from .routers import health, sessions, pipeline
from prototyper.models.manager import BackendManager
from prototyper.models.prompts import PromptLibrary

logger = logging.getLogger(__name__)

# Global application state
app_state = {}

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Loads the backend configuration and default prompts once at startup
    and drops them at shutdown.
    """
    logger.info("Starting Prototyper API server...")

    backend_manager = BackendManager()
    app_state["backend_manager"] = backend_manager
    app_state["prompt_library"] = PromptLibrary()

    logger.info(f"BackendManager ready (config {backend_manager.config_path})")

    yield  # Server runs here

    logger.info("Shutting down Prototyper API server...")
    backend_manager.cleanup()
    app_state.clear()

def create_app() -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.
    """

    app = FastAPI(
        title="Prototyper API",
        description="Turn product requirements into a validated single-file HTML prototype",
        version="1.0.0",
        lifespan=lifespan
    )

    # Configure CORS middleware for frontend communication
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],  # Common frontend ports
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["sessions"])
    app.include_router(pipeline.router, prefix="/api/v1/sessions", tags=["pipeline"])

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with basic API information."""
        return {
            "name": "Prototyper API",
            "version": "1.0.0",
            "status": "operational",
            "endpoints": {
                "health": "/health",
                "sessions": "/api/v1/sessions",
                "docs": "/docs",
                "redoc": "/redoc"
            }
        }

    return app

# Create the FastAPI app instance
app = create_app()
