"""
Shared async HTTP plumbing for the template store and GitHub clients.

This module owns the httpx client lifecycle, per-request timeouts, and
retry of idempotent requests on transient network failures.
"""

import asyncio
import logging
from typing import Any, Self

import httpx

from .exceptions import RemoteNetworkError, RemoteTimeoutError

logger = logging.getLogger(__name__)


class BaseHTTPClient:
    """
    Base class for clients talking to a remote HTTP API.

    Subclasses supply default headers and interpret response status codes;
    this class only maps transport failures to RemoteError subclasses.
    """

    DEFAULT_TIMEOUT = 30  # seconds
    MAX_RETRIES = 3
    RETRY_DELAY = 1  # seconds
    IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "DELETE"})

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            timeout: Request timeout in seconds
            max_retries: Retries for idempotent requests on network failures
            retry_delay: Base delay between retries in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        retry_count: int = 0,
    ) -> httpx.Response:
        """
        Send a request, retrying idempotent methods on transient failures.

        Returns:
            The response, whatever its status code

        Raises:
            RemoteTimeoutError: If the request timed out on every attempt
            RemoteNetworkError: If the connection failed on every attempt, or
                the request failed for any other transport reason
        """
        client = await self._get_client()
        logger.debug(f"{method} {url}")

        try:
            return await client.request(method, url, params=params, json=json)

        except (httpx.TimeoutException, httpx.NetworkError) as e:
            can_retry = method.upper() in self.IDEMPOTENT_METHODS
            if can_retry and retry_count < self.max_retries:
                msg = f"{method} {url} failed, retrying ({retry_count + 1}/{self.max_retries})"
                logger.warning(msg)
                await asyncio.sleep(self.retry_delay * (retry_count + 1))
                return await self._request(method, url, params, json, retry_count + 1)
            if isinstance(e, httpx.TimeoutException):
                raise RemoteTimeoutError(url, self.timeout) from e
            raise RemoteNetworkError(url, str(e)) from e

        except (httpx.TransportError, httpx.InvalidURL) as e:
            # Protocol, proxy, and URL errors are not transient.
            raise RemoteNetworkError(url, str(e) or type(e).__name__) from e
