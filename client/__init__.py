"""Python client library for the Virtual Terminal Simulator (VTS) API.

Example:
    from client import VTSClient

    with VTSClient() as client:
        result = client.terminal.execute("ls -la /home")
        print(result.output)
"""

from client.client import VTSClient
from client.exceptions import (
    APIError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    ServerError,
    TimeoutError,
    ValidationError,
    VTSClientError,
)
from client._files import FilesClient
from client._packages import PackagesClient
from client._terminal import CommandResultResponse, TerminalClient

__all__ = [
    "VTSClient",
    "TerminalClient",
    "FilesClient",
    "PackagesClient",
    "CommandResultResponse",
    "VTSClientError",
    "APIError",
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "ServerError",
    "TimeoutError",
    "ValidationError",
]
