"""Exception hierarchy for the VTS API client.

Exception Hierarchy:
    VTSClientError (base)
    ├── ConnectionError - Network/connection failures
    ├── TimeoutError - Request timeout
    └── APIError - Server returned an error response
        ├── ValidationError (HTTP 422)
        ├── NotFoundError (HTTP 404)
        ├── ConflictError (HTTP 409)
        └── ServerError (HTTP 5xx)

Note that a command that fails inside the simulated shell is not an
exception: ``client.terminal.execute`` returns its non-zero exit code in
the result. These exceptions cover the HTTP layer and the direct file and
package endpoints.

Example:
    Catching specific errors::

        try:
            client.files.read("/etc/missing")
        except NotFoundError as e:
            print(e.message)   # "/etc/missing: No such file or directory"
"""

from typing import Any


class VTSClientError(Exception):
    """Base exception for all VTS client errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ConnectionError(VTSClientError):
    """Failed to connect to the VTS server.

    Attributes:
        message: Human-readable error description.
        url: The URL that failed to connect.
        cause: The underlying exception that caused the connection failure.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.url = url
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (url: {self.url})"
        return self.message


class TimeoutError(VTSClientError):
    """Request timed out.

    Attributes:
        message: Human-readable error description.
        timeout: The timeout value in seconds.
        url: The URL that timed out.
    """

    def __init__(
        self,
        message: str,
        timeout: float | None = None,
        url: str | None = None,
    ) -> None:
        self.timeout = timeout
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        if self.timeout is not None:
            return f"{self.message} (timeout: {self.timeout}s)"
        return self.message


class APIError(VTSClientError):
    """Server returned an error response.

    Attributes:
        message: Human-readable error message (the server's ``detail``).
        status_code: HTTP status code from the server.
        error_type: Error title from the response body, e.g. "Not Found".
        details: Additional error details from the response (if available).
        response_body: Raw response body for debugging.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        error_type: str | None = None,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        self.response_body = response_body
        super().__init__(message)

    def __str__(self) -> str:
        if self.error_type:
            return f"[HTTP {self.status_code}] [{self.error_type}] {self.message}"
        return f"[HTTP {self.status_code}] {self.message}"

    @property
    def path(self) -> str | None:
        """Virtual path named in the error body, for file-system errors."""
        if isinstance(self.response_body, dict):
            return self.response_body.get("path")
        return None


class ValidationError(APIError):
    """Request validation failed (HTTP 422).

    Also raised for archives that cannot be extracted.
    """

    def __init__(
        self,
        message: str,
        error_type: str | None = "validation_error",
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=422,
            error_type=error_type,
            details=details,
            response_body=response_body,
        )


class NotFoundError(APIError):
    """Path or package not found (HTTP 404)."""

    def __init__(
        self,
        message: str,
        error_type: str | None = "not_found",
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=404,
            error_type=error_type,
            details=details,
            response_body=response_body,
        )


class ConflictError(APIError):
    """State conflict (HTTP 409).

    Common cases include:
    - Reading a directory or listing a file
    - Deleting a non-empty directory without ``recursive``
    - Removing a package that is not installed
    """

    def __init__(
        self,
        message: str,
        error_type: str | None = "conflict",
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=409,
            error_type=error_type,
            details=details,
            response_body=response_body,
        )


class ServerError(APIError):
    """Server-side error (HTTP 5xx).

    Failed downloads surface here as 502 (upstream error) or 504 (timeout).
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: str | None = None,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=status_code,
            error_type=error_type,
            details=details,
            response_body=response_body,
        )
