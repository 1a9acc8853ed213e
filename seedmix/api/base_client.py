"""
Base API Client

Shared aiohttp request handling for SeedMix's external HTTP clients:
rate limiting, status handling and conversion of every failure into
ProviderError.
"""

import asyncio
import json
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp
import structlog

from ..models.errors import ProviderError
from .rate_limiter import UnifiedRateLimiter

logger = structlog.get_logger(__name__)


class BaseAPIClient(ABC):
    """
    Base HTTP client with unified request handling.

    Subclasses own the session through the async context manager protocol
    and implement `_extract_api_error` for service-specific error bodies.
    """

    def __init__(
        self,
        base_url: str,
        rate_limiter: UnifiedRateLimiter,
        timeout: float = 10,
        service_name: str = "api"
    ):
        """
        Initialize base API client.

        Args:
            base_url: Base URL for the API
            rate_limiter: Rate limiter instance for this client
            timeout: Request timeout in seconds
            service_name: Service name for logging and identification
        """
        self.base_url = base_url.rstrip('/')
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.service_name = service_name
        self.session: Optional[aiohttp.ClientSession] = None

        self.logger = logger.bind(service=service_name, component="BaseAPIClient")

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def _make_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        retries: int = 1
    ) -> Dict[str, Any]:
        """
        Make a rate-limited HTTP request.

        Rate limiting (429) and server errors are retried up to `retries`
        times; other client errors fail immediately.

        Args:
            endpoint: API endpoint (relative to base_url)
            params: Query parameters
            method: HTTP method
            headers: Additional headers
            json_body: JSON payload for POST/PUT requests
            retries: Number of retry attempts

        Returns:
            Parsed JSON response data (empty dict for bodiless responses)

        Raises:
            ProviderError: For any unrecoverable failure
        """
        if not self.session:
            raise ProviderError(
                f"{self.service_name} client not initialized. Use async context manager.",
                endpoint=endpoint
            )

        url = f"{self.base_url}/{endpoint.lstrip('/')}" if endpoint else self.base_url
        request_headers = dict(headers or {})
        request_headers.setdefault('User-Agent', f'SeedMix-{self.service_name}/1.0')

        for attempt in range(retries + 1):
            await self.rate_limiter.wait_if_needed()
            try:
                self.logger.debug(
                    "Making API request",
                    method=method,
                    endpoint=endpoint,
                    attempt=attempt + 1
                )

                async with self.session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_body,
                    headers=request_headers
                ) as response:

                    if response.status in (200, 201):
                        data = await self._parse_response(response, endpoint)
                        error_info = self._extract_api_error(data)
                        if error_info:
                            raise ProviderError(
                                f"{self.service_name} API error: {error_info}",
                                endpoint=endpoint,
                                status=response.status
                            )
                        return data

                    if response.status == 204:
                        return {}

                    if response.status == 429 and attempt < retries:
                        wait_time = self._calculate_backoff_time(response, attempt)
                        self.logger.warning(
                            "Rate limited - backing off",
                            endpoint=endpoint,
                            wait_time=wait_time
                        )
                        await asyncio.sleep(wait_time)
                        continue

                    if response.status >= 500 and attempt < retries:
                        self.logger.warning(
                            "Server error - retrying",
                            endpoint=endpoint,
                            status=response.status
                        )
                        await self._exponential_backoff(attempt)
                        continue

                    detail = await self._read_error_detail(response)
                    raise ProviderError(
                        f"{self.service_name} request failed with status {response.status}: {detail}",
                        endpoint=endpoint,
                        status=response.status
                    )

            except asyncio.TimeoutError:
                self.logger.warning("Request timeout", endpoint=endpoint, timeout=self.timeout)
                if attempt == retries:
                    raise ProviderError(
                        f"{self.service_name} request timed out",
                        endpoint=endpoint
                    )
                await self._exponential_backoff(attempt)

            except aiohttp.ClientError as e:
                self.logger.warning(
                    "HTTP client error",
                    endpoint=endpoint,
                    error=str(e),
                    error_type=type(e).__name__
                )
                if attempt == retries:
                    raise ProviderError(
                        f"{self.service_name} client error: {e}",
                        endpoint=endpoint
                    ) from e
                await self._exponential_backoff(attempt)

        raise ProviderError(
            f"{self.service_name} request failed after {retries + 1} attempts",
            endpoint=endpoint
        )

    async def _parse_response(
        self,
        response: aiohttp.ClientResponse,
        endpoint: str
    ) -> Dict[str, Any]:
        try:
            data = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
            raise ProviderError(
                f"{self.service_name} returned invalid JSON",
                endpoint=endpoint,
                status=response.status
            ) from e
        return data if data is not None else {}

    async def _read_error_detail(self, response: aiohttp.ClientResponse) -> str:
        try:
            data = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError):
            return response.reason or "unknown error"
        return self._extract_api_error(data or {}) or response.reason or "unknown error"

    @abstractmethod
    def _extract_api_error(self, data: Dict[str, Any]) -> Optional[str]:
        """
        Extract API-specific error information from response data.

        Args:
            data: Parsed response data

        Returns:
            Error message if found, None otherwise
        """
        pass

    def _calculate_backoff_time(self, response: aiohttp.ClientResponse, attempt: int) -> float:
        retry_after = response.headers.get('Retry-After')
        if retry_after:
            try:
                return min(float(retry_after), 60.0)
            except ValueError:
                pass
        return min(2 ** attempt, 60)

    async def _exponential_backoff(self, attempt: int, base_delay: float = 0.5):
        delay = base_delay * (2 ** attempt)
        jitter = random.uniform(0.1, 0.3) * delay
        await asyncio.sleep(min(delay + jitter, 30.0))
