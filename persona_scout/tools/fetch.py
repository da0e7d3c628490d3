"""
HTTP Helpers
Deadline-bounded requests with a small retry budget for transient failures.
"""
import asyncio
from typing import Optional

import httpx

from ..core.logging import tool_logger
from ..errors import UpstreamError, UpstreamTimeoutError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_7_2) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)


def make_client(
    timeout_seconds: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Client used by every tool; ``transport`` is injected by tests."""
    return httpx.AsyncClient(
        timeout=timeout_seconds,
        follow_redirects=True,
        max_redirects=5,
        transport=transport,
        headers={"User-Agent": DEFAULT_USER_AGENT},
    )


async def request_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout_seconds: float,
    max_retries: int = 2,
    backoff_seconds: float = 0.5,
    **kwargs
) -> httpx.Response:
    """
    Send a request, retrying transport failures and 5xx responses.

    Each attempt is bounded by ``timeout_seconds``; a timeout is not retried.
    The wait between attempts grows linearly (backoff, 2*backoff, ...).
    After the last attempt a 5xx response is returned to the caller, a
    transport failure is raised as UpstreamError.

    Raises:
        UpstreamTimeoutError: an attempt exceeded the deadline
        UpstreamError: the request could not be sent
    """
    log = tool_logger()
    attempt = 0
    while True:
        try:
            response = await asyncio.wait_for(
                client.request(method, url, **kwargs),
                timeout=timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeoutError(
                f"{method} {url} timed out after {timeout_seconds}s"
            ) from e
        except httpx.TransportError as e:
            if attempt >= max_retries:
                raise UpstreamError(f"{method} {url} failed: {e}") from e
            log.warning(f"Transport error on {method} {url}, retrying: {e}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # Redirect loops and malformed URLs are not retried
            raise UpstreamError(f"{method} {url} failed: {e}") from e
        else:
            if response.status_code < 500 or attempt >= max_retries:
                return response
            log.warning(f"{method} {url} returned {response.status_code}, retrying")

        attempt += 1
        await asyncio.sleep(backoff_seconds * attempt)
