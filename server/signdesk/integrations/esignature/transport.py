"""
Assinafy HTTP transport

Thin authenticated wrapper around aiohttp that normalizes provider error
responses into TransportError.
"""

import asyncio
import json
from typing import Any, Dict, Optional, Union

import aiohttp
from aiohttp import ClientTimeout

from signdesk.core.logging import get_logger

from .base import TransportError

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.assinafy.com.br/v1"


class AssinafyTransport:
    """Authenticated request wrapper for the Assinafy REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: int = 30,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._timeout = ClientTimeout(total=timeout_seconds, connect=10)
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    def build_headers(self, is_binary: bool = False) -> Dict[str, str]:
        """Headers for every request; multipart bodies get no Content-Type so aiohttp writes the boundary."""
        headers = {
            "X-Api-Key": self.api_key,
            "Accept": "application/json",
        }
        if not is_binary:
            headers["Content-Type"] = "application/json"
        return headers

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Union[Dict[str, Any], aiohttp.FormData]] = None,
        is_binary: bool = False,
        operation: Optional[str] = None,
    ) -> Any:
        """
        Send a request and return the parsed response body.

        Args:
            path: Endpoint path relative to the API base URL
            method: HTTP method
            body: JSON-serializable dict, or FormData when is_binary is set
            is_binary: Send body as multipart without an explicit Content-Type
            operation: Step name attached to raised errors

        Returns:
            Decoded JSON, or the raw text when the body is not JSON

        Raises:
            TransportError: On any non-2xx response or network failure
        """
        url = f"{self.base_url}{path}"
        operation = operation or f"{method.lower()} {path}"
        kwargs: Dict[str, Any] = {"headers": self.build_headers(is_binary)}
        if body is not None:
            if is_binary:
                kwargs["data"] = body
            else:
                kwargs["data"] = json.dumps(body)

        logger.info("assinafy.request", method=method, path=path, operation=operation)

        try:
            async with self.session.request(method, url, **kwargs) as response:
                # Undecodable bytes become U+FFFD
                response_text = (await response.read()).decode("utf-8", errors="replace")
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("assinafy.request_failed", method=method, path=path, error=str(e))
            raise TransportError(
                message=f"Assinafy request failed: {str(e)}",
                http_status=None,
                raw_body=str(e),
                operation=operation,
                error_code="network_error",
                provider="assinafy",
            ) from e

        if not 200 <= status < 300:
            logger.error("assinafy.api_error", status=status, body=response_text, operation=operation)
            raise TransportError(
                message=f"Assinafy API error: {status} - {response_text}",
                http_status=status,
                raw_body=response_text,
                operation=operation,
                error_code=self._error_code_for_status(status),
                provider="assinafy",
            )

        logger.info("assinafy.response", status=status, operation=operation)
        if not response_text:
            return None
        try:
            return json.loads(response_text)
        except json.JSONDecodeError:
            return response_text

    def _error_code_for_status(self, status: int) -> str:
        if status == 401:
            return "AUTH_ERROR"
        if status == 403:
            return "PERMISSION_ERROR"
        if status == 404:
            return "NOT_FOUND"
        if status == 429:
            return "RATE_LIMIT"
        if status >= 500:
            return "SERVER_ERROR"
        return "api_error"

    async def close(self):
        """Close the HTTP session if this transport created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
