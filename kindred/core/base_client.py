import asyncio
from typing import Any

import httpx
from loguru import logger


class BaseClient:
    """
    Base asynchronous HTTP client with built-in retry logic and logging.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        max_retries: int = 3,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx.AsyncClient instance."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, max_tries: int | None = None, **kwargs) -> httpx.Response:
        """Internal request handler with retry logic."""
        client = await self.get_client()
        tries = max_tries or self.max_retries
        last_exception = None

        for attempt in range(1, tries + 1):
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                last_exception = e
                # Client errors will not improve on retry
                if e.response.status_code < 500:
                    logger.error(f"Request rejected ({method} {url}): {e.response.status_code}")
                    break
                if attempt < tries:
                    await self._backoff(method, url, e, attempt, tries)
                else:
                    logger.error(f"Request failed after {tries} attempts: {str(e)}")
            except httpx.RequestError as e:
                last_exception = e
                if attempt < tries:
                    await self._backoff(method, url, e, attempt, tries)
                else:
                    logger.error(f"Request failed after {tries} attempts: {str(e)}")

        if last_exception:
            raise last_exception
        raise httpx.RequestError("Request failed for unknown reasons")

    async def _backoff(self, method: str, url: str, error: Exception, attempt: int, tries: int) -> None:
        wait_time = 0.5 * (2 ** (attempt - 1))  # Exponential backoff
        logger.warning(
            f"Request failed ({method} {url}): {str(error)}. "
            f"Retrying in {wait_time}s... (Attempt {attempt}/{tries})"
        )
        await asyncio.sleep(wait_time)

    async def post(self, url: str, json: dict[str, Any] | None = None, **kwargs) -> httpx.Response:
        """Perform a POST request and return the raw response."""
        return await self._request("POST", url, json=json, **kwargs)
