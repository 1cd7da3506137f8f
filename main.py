"""Main entry point for the Virtual Terminal Simulator (VTS) FastAPI application.

This module creates and configures the FastAPI app that serves a simulated
Unix shell over an in-memory file system.

To run the development server:
    uvicorn main:app --reload

To run in production:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from api.dependencies import initialize_terminal_session, shutdown_terminal_session
from api.exceptions import (
    filesystem_error_handler,
    generic_exception_handler,
    package_error_handler,
    runtime_error_handler,
    validation_exception_handler,
    value_error_handler,
)
from api.routes import files as files_routes
from api.routes import packages as packages_routes
from api.routes import terminal as terminal_routes
from config import Settings
from models.errors import FileSystemError, PackageError

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the terminal session at startup and drop it at shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to FastAPI to handle requests.
    """
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting VTS")
    initialize_terminal_session(settings)

    yield

    logger.info("Shutting down VTS")
    shutdown_terminal_session()


app = FastAPI(
    title="Virtual Terminal Simulator (VTS)",
    description="Simulated Unix shell over an in-memory file system",
    version=VERSION,
    lifespan=lifespan,
)

# Specific exceptions before general ones
app.add_exception_handler(FileSystemError, filesystem_error_handler)
app.add_exception_handler(PackageError, package_error_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(ValueError, value_error_handler)
app.add_exception_handler(RuntimeError, runtime_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(terminal_routes.router)
app.include_router(files_routes.router)
app.include_router(packages_routes.router)


@app.get("/")
async def root():
    """Root endpoint - returns a welcome message."""
    return {
        "message": "Welcome to the Virtual Terminal Simulator API",
        "version": VERSION,
        "docs_url": "/docs",
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
