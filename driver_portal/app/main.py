"""
FastAPI Application Entry Point.

This is the main application file for the Driver Portal.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from driver_portal.app.core.config import settings
from driver_portal.app.api.v1.router import router as api_v1_router
from driver_portal.app.core.observability import ObservabilityMiddleware, configure_logging
from driver_portal.app.db.client import BackendClient
from driver_portal.app.services.background import BackgroundTasks
from driver_portal.app.services.trip_board import TripBoards
from driver_portal.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates the single backend client and the per-process registries.
    2. On shutdown, lets in-flight side calls finish, then closes the client.
    """
    configure_logging()
    app.state.backend = BackendClient.from_settings()
    app.state.boards = TripBoards()
    app.state.tasks = BackgroundTasks()
    yield
    await app.state.tasks.drain()
    await app.state.backend.aclose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Driver portal: assigned trips, guest QR confirmation and trip status updates",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")
