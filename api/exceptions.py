"""Exception handlers for the VTS FastAPI application.

This module converts file-system, package and validation exceptions raised
by route handlers into consistent JSON responses of the form::

    {"error": "Not Found", "detail": "/tmp/x: No such file or directory", ...}
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from models.errors import (
    AlreadyExistsError,
    ArchiveError,
    DirectoryNotEmptyError,
    DownloadError,
    DownloadTimeoutError,
    FileSystemError,
    IsDirectoryError,
    NotDirectoryError,
    NotFoundError,
    PackageError,
    PackageNotFoundError,
    PackageNotInstalledError,
    PermissionDeniedError,
    StoreCorruptedError,
)

logger = logging.getLogger(__name__)

# Checked in order, so subclasses must come before their bases.
_FILESYSTEM_STATUS: list[tuple[type[FileSystemError], int, str]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (IsDirectoryError, status.HTTP_409_CONFLICT, "Is A Directory"),
    (NotDirectoryError, status.HTTP_409_CONFLICT, "Not A Directory"),
    (DirectoryNotEmptyError, status.HTTP_409_CONFLICT, "Directory Not Empty"),
    (AlreadyExistsError, status.HTTP_409_CONFLICT, "Already Exists"),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN, "Permission Denied"),
    (ArchiveError, status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid Archive"),
    (DownloadTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "Download Timeout"),
    (DownloadError, status.HTTP_502_BAD_GATEWAY, "Download Failed"),
    (StoreCorruptedError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Store Corrupted"),
]


def filesystem_status(exc: FileSystemError) -> tuple[int, str]:
    """Return the HTTP status code and error title for a file-system error."""
    for error_type, status_code, title in _FILESYSTEM_STATUS:
        if isinstance(exc, error_type):
            return status_code, title
    return status.HTTP_400_BAD_REQUEST, "File System Error"


async def filesystem_error_handler(request: Request, exc: FileSystemError):
    """Handle FileSystemError and its subclasses.

    Args:
        request: The incoming request that triggered the error.
        exc: The FileSystemError exception.

    Returns:
        JSONResponse with the mapped status, the shell-style message and
        the offending path.
    """
    status_code, title = filesystem_status(exc)
    content = {"error": title, "detail": exc.message, "path": exc.path}
    if isinstance(exc, DownloadError):
        content["url"] = exc.url
        content["upstream_status"] = exc.status_code
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=content)


async def package_error_handler(request: Request, exc: PackageError):
    """Handle PackageError exceptions.

    Unknown packages map to 404, removing a package that is not installed
    maps to 409.
    """
    if isinstance(exc, PackageNotInstalledError):
        status_code, title = status.HTTP_409_CONFLICT, "Package Not Installed"
    elif isinstance(exc, PackageNotFoundError):
        status_code, title = status.HTTP_404_NOT_FOUND, "Package Not Found"
    else:
        status_code, title = status.HTTP_400_BAD_REQUEST, "Package Error"
    return JSONResponse(
        status_code=status_code,
        content={"error": title, "detail": exc.message, "package": exc.package},
    )


async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised outside request parsing."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "detail": "The request data failed validation",
            "validation_errors": exc.errors(include_url=False, include_context=False),
        },
    )


async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid Value",
            "detail": str(exc),
            "type": "ValueError",
        },
    )


async def runtime_error_handler(request: Request, exc: RuntimeError):
    """Handle RuntimeError exceptions, e.g. an uninitialized session."""
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Runtime Error",
            "detail": str(exc),
            "type": "RuntimeError",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle any unhandled exceptions.

    The traceback is logged; clients only see the exception type.
    """
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "type": type(exc).__name__,
        },
    )
