"""Internal HTTP handling utilities for the VTS client.

This module provides the low-level HTTP communication layer used by all
sub-clients. It handles:
- Making HTTP requests
- Response parsing and error mapping
- Optional retry with exponential backoff

This is an internal module and should not be imported directly by users.
"""

import logging
import time
from typing import Any, Literal

import httpx

from client.exceptions import (
    APIError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    ServerError,
    TimeoutError,
    ValidationError,
)

logger = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

# Status codes that trigger automatic retry (when retry is enabled).
# 502/504 are not retried: the server uses them for failed downloads.
RETRYABLE_STATUS_CODES = {503}

DEFAULT_RETRY_BACKOFF_BASE = 0.5  # seconds
DEFAULT_RETRY_BACKOFF_MAX = 30.0  # seconds


def _parse_error_response(response: httpx.Response) -> tuple[str, str | None, dict | None]:
    """Parse an error response to extract message, type, and details.

    Understands the server's ``{"error": ..., "detail": ...}`` bodies and
    FastAPI's request-validation lists. Falls back to the raw text.

    Returns:
        A tuple of (message, error_type, details).
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return (text or f"HTTP {response.status_code} error"), None, None

    if isinstance(body, dict):
        detail = body.get("detail")
        error_type = body.get("error") or body.get("type")
        if isinstance(detail, str):
            return detail, error_type, body.get("details")
        if isinstance(detail, list):
            messages = [
                f"{err.get('loc', ['unknown'])[-1]}: {err.get('msg', 'invalid')}"
                for err in detail
            ]
            return "; ".join(messages), "validation_error", {"errors": detail}
        if "error" in body:
            return body["error"], body.get("type"), body.get("details")

    return str(body), None, None


def _raise_for_status(response: httpx.Response) -> None:
    """Raise an appropriate exception for error status codes.

    Raises:
        ValidationError: For HTTP 422 responses.
        NotFoundError: For HTTP 404 responses.
        ConflictError: For HTTP 409 responses.
        ServerError: For HTTP 5xx responses.
        APIError: For other HTTP 4xx responses.
    """
    if response.is_success:
        return

    message, error_type, details = _parse_error_response(response)
    status_code = response.status_code

    try:
        response_body = response.json()
    except ValueError:
        response_body = response.text

    if status_code == 422:
        raise ValidationError(message, error_type, details, response_body)
    if status_code == 404:
        raise NotFoundError(message, error_type, details, response_body)
    if status_code == 409:
        raise ConflictError(message, error_type, details, response_body)
    if status_code >= 500:
        raise ServerError(message, status_code, error_type, details, response_body)
    raise APIError(message, status_code, error_type, details, response_body)


def _calculate_backoff(attempt: int, base: float = DEFAULT_RETRY_BACKOFF_BASE) -> float:
    """Return ``base * 2^attempt`` capped at ``DEFAULT_RETRY_BACKOFF_MAX``."""
    return min(base * (2**attempt), DEFAULT_RETRY_BACKOFF_MAX)


class HTTPClient:
    """Synchronous HTTP client for making API requests.

    Wraps httpx.Client with error handling and optional retry.

    Attributes:
        base_url: The base URL for all API requests.
        timeout: Request timeout in seconds.
        retry_enabled: Whether to retry on transient failures.
        max_retries: Maximum number of retry attempts.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: The base URL for all API requests.
            timeout: Request timeout in seconds.
            retry_enabled: Whether to retry on transient failures.
            max_retries: Maximum number of retry attempts.
            transport: Custom transport (e.g., MockTransport for testing).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Make an HTTP request and return the parsed JSON response.

        Args:
            method: The HTTP method (GET, POST, etc.).
            path: The URL path (appended to base_url).
            params: Query parameters; ``None`` values are dropped.
            json: JSON body to send with the request.

        Returns:
            The parsed JSON response body, or None for empty responses.

        Raises:
            ConnectionError: If the connection fails.
            TimeoutError: If the request times out.
            APIError: If the server returns an error response.
        """
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        attempts = self.max_retries + 1 if self.retry_enabled else 1

        for attempt in range(attempts):
            is_last = attempt >= attempts - 1
            try:
                response = self._client.request(
                    method=method,
                    url=path,
                    params=params,
                    json=json,
                )
            except httpx.ConnectError as e:
                if is_last:
                    raise ConnectionError(f"Failed to connect to {url}", url=url, cause=e) from e
            except httpx.TimeoutException as e:
                if is_last:
                    raise TimeoutError(
                        f"Request to {url} timed out", timeout=self.timeout, url=url
                    ) from e
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES or is_last:
                    _raise_for_status(response)
                    return response.json() if response.content else None

            delay = _calculate_backoff(attempt)
            logger.debug(f"Retrying {method} {path} in {delay}s (attempt {attempt + 1})")
            time.sleep(delay)

        raise RuntimeError("Unexpected error in request retry loop")

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return self.request("POST", path, params=params, json=json)

    def put(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return self.request("PUT", path, params=params, json=json)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("DELETE", path, params=params)
