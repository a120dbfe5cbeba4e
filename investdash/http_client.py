"""HTTP client with semaphore control and retry logic."""

import asyncio
import logging
import random
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

# Global HTTP semaphore (limits concurrent requests)
HTTP_SEMAPHORE = asyncio.Semaphore(10)

# Global HTTP client (for connection pooling)
_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Get or create global HTTP client."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(
            timeout=30,
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=50),
        )
    return _http_client


async def close_http_client() -> None:
    """Close global HTTP client."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def _backoff(attempt: int) -> float:
    return 0.5 * (2 ** attempt) + random.uniform(0, 0.2)


async def http_request(
    method: str,
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    semaphore: Optional[asyncio.Semaphore] = None,
    params: Optional[dict] = None,
    json: Optional[Any] = None,
    headers: Optional[dict] = None,
    timeout: int = 30,
    retries: int = 3,
) -> httpx.Response:
    """
    Send a request with semaphore + exponential backoff retry.

    Args:
        method: HTTP method ("GET", "POST", ...)
        url: URL to call
        client: Client to use (global pooled client by default)
        semaphore: Concurrency limit (global semaphore by default)
        params: Query parameters
        json: JSON body
        headers: Custom headers
        timeout: Request timeout in seconds
        retries: Number of attempts

    Returns:
        httpx.Response object

    Raises:
        httpx.HTTPError on persistent failure or a 4xx response
    """
    client = client or get_http_client()
    semaphore = semaphore or HTTP_SEMAPHORE
    retries = max(1, retries)
    last_exception: Optional[Exception] = None

    async with semaphore:
        for attempt in range(retries):
            try:
                logger.debug(
                    "HTTP %s attempt %d/%d: %s",
                    method,
                    attempt + 1,
                    retries,
                    url
                )

                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=headers,
                    timeout=timeout,
                )

                # Handle rate limit (429)
                if response.status_code == 429 and attempt < retries - 1:
                    wait_time = float(response.headers.get("Retry-After", "1"))
                    logger.warning(
                        "Rate limited (429). Retrying after %.1f seconds...",
                        wait_time
                    )
                    await asyncio.sleep(wait_time)
                    continue

                # Handle server errors (5xx)
                if response.status_code >= 500 and attempt < retries - 1:
                    backoff = _backoff(attempt)
                    logger.warning(
                        "Server error (%d). Retrying in %.2f seconds...",
                        response.status_code,
                        backoff
                    )
                    await asyncio.sleep(backoff)
                    continue

                # Success or client error
                response.raise_for_status()
                logger.debug("HTTP %s success: %s", method, url)
                return response

            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_exception = exc
                if attempt < retries - 1:
                    backoff = _backoff(attempt)
                    logger.warning(
                        "HTTP error on attempt %d: %s. Retrying in %.2f seconds...",
                        attempt + 1,
                        exc,
                        backoff
                    )
                    await asyncio.sleep(backoff)
                else:
                    logger.error("HTTP %s failed after %d retries: %s", method, retries, exc)

            except httpx.HTTPError as exc:
                logger.error("HTTP error: %s", exc)
                raise

    # All retries exhausted
    if last_exception:
        raise last_exception

    raise httpx.NetworkError("HTTP request failed: max retries exceeded")


async def http_get(url: str, **kwargs: Any) -> httpx.Response:
    return await http_request("GET", url, **kwargs)


async def http_post(url: str, **kwargs: Any) -> httpx.Response:
    return await http_request("POST", url, **kwargs)
