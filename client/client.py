"""Main VTS client class.

Example:
    Synchronous usage::

        from client import VTSClient

        with VTSClient(base_url="http://localhost:8000") as client:
            client.terminal.execute("apt install nmap")
            print(client.files.read("/usr/bin/nmap").content)
"""

from typing import Any

from client._files import FilesClient
from client._http import HTTPClient
from client._packages import PackagesClient
from client._terminal import TerminalClient
from client.models import HealthResponse, ServerInfoResponse


class VTSClient:
    """Synchronous client for the VTS REST API.

    Provides namespaced sub-clients for the terminal, file and package
    endpoints. Supports the context manager protocol for cleanup.

    Example:
        Manual lifecycle management::

            client = VTSClient()
            try:
                result = client.terminal.execute("pwd")
            finally:
                client.close()
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        """Initialize the VTS client.

        Args:
            base_url: The base URL of the VTS server.
            timeout: Request timeout in seconds.
            retry_enabled: Retry connection errors, timeouts and HTTP 503
                with exponential backoff.
            max_retries: Maximum number of retry attempts when retry is enabled.
            transport: Custom HTTP transport (e.g., MockTransport for testing).
        """
        self._http = HTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )
        self._terminal: TerminalClient | None = None
        self._files: FilesClient | None = None
        self._packages: PackagesClient | None = None

    def __enter__(self) -> "VTSClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the client and release resources."""
        self._http.close()

    @property
    def base_url(self) -> str:
        return self._http.base_url

    @property
    def terminal(self) -> TerminalClient:
        """Command execution and shell state (/terminal)."""
        if self._terminal is None:
            self._terminal = TerminalClient(self._http)
        return self._terminal

    @property
    def files(self) -> FilesClient:
        """Direct file system access (/files)."""
        if self._files is None:
            self._files = FilesClient(self._http)
        return self._files

    @property
    def packages(self) -> PackagesClient:
        """Simulated package management (/packages)."""
        if self._packages is None:
            self._packages = PackagesClient(self._http)
        return self._packages

    def health(self) -> HealthResponse:
        return HealthResponse(**self._http.get("/health"))

    def info(self) -> ServerInfoResponse:
        return ServerInfoResponse(**self._http.get("/"))
